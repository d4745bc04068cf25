""" Clinical shorthand substitution, applied to every note once before it
    is encoded. Matching is case-insensitive and always prefers the longest
    phrase, so "best corrected visual acuity" becomes "BCVA" rather than
    "best corrected VA".
"""

import re


default_table = (
    ('age-related macular degeneration', 'AMD'),
    ('best corrected visual acuity', 'BCVA'),
    ('optical coherence tomography', 'OCT'),
    ('posterior vitreous detachment', 'PVD'),
    ('intraocular pressure', 'IOP'),
    ('retinal detachment', 'RD'),
    ('ejection fraction', 'EF'),
    ('visual acuity', 'VA'),
)


class Normalizer:
    """ Apply a table of (*phrase*, *abbreviation*) pairs to arbitrary text.
        The table order does not matter; phrases are sorted longest-first
        and compiled into a single alternation, so each position in the
        input is matched against the longest candidate before any shorter
        one.
    """

    def __init__(self, table=default_table):

        lookup = dict()
        for phrase, abbreviation in table:
            lookup[phrase.lower()] = abbreviation

        self.lookup = lookup

        if lookup:
            phrases = sorted(lookup, key=len, reverse=True)
            pattern = '|'.join(re.escape(phrase) for phrase in phrases)

            # re.ASCII keeps case folding to the ASCII range; without it
            # characters such as U+212A KELVIN SIGN would match 'k'.

            self.pattern = re.compile(pattern, re.IGNORECASE | re.ASCII)
        else:
            self.pattern = None


    def __call__(self, text):
        return self.normalize(text)


    def _substitute(self, match):
        return self.lookup[match.group(0).lower()]


    def normalize(self, text):
        """ Return *text* with every known phrase replaced by its
            abbreviation.
        """

        if self.pattern is None:
            return text

        return self.pattern.sub(self._substitute, text)


# end of class Normalizer


default = Normalizer()


def normalize(text):
    """ Apply the default shorthand table to *text*.
    """

    return default.normalize(text)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
