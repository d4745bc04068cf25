"""Protocol constants.

Keep these in one place to avoid stringly-typed frame handling.
"""

SESSION_START = "SESSION_START"
CHUNK = "CHUNK"
SESSION_END = "SESSION_END"

# Field separator on the wire, and the character that stands in for a
# literal separator inside PLAIN payloads (U+2016 DOUBLE VERTICAL LINE).
DELIMITER = "|"
DELIMITER_ESCAPE = "‖"

CHUNKS_PREFIX = "CHUNKS="
ENCODING_PREFIX = "ENC="

# Chunk sizes in code units. Base64 chunks are smaller to leave headroom
# for transport overhead.
PLAIN_CHUNK_SIZE = 3000
BASE64_CHUNK_SIZE = 2000

# Printable ASCII, inclusive.
ASCII_SAFE_MIN = 32
ASCII_SAFE_MAX = 126
