import struct


# TEA parameters used by the engine for shader archives
TEA_KEY = (0x3FFFFFDD, 0x7FC3, 0xE5, 0x3FFFEF)
TEA_ENDIAN = "little"
TEA_ROUNDS = 32
TEA_DELTA = 0x9E3779B9
TEA_DECRYPT_SUM = 0xC6EF3720  # TEA_DELTA * TEA_ROUNDS mod 2**32

# Member framing: u32 little-endian payload length, then payload
MEMBER_LEN_STRUCT = struct.Struct("<I")
MAX_MEMBER_SIZE = 0xFFFFFFFF

# Trailer: 32 lowercase hex chars of MD5 plus NUL terminator
DIGEST_HEX_LEN = 32
TRAILER_SIZE = DIGEST_HEX_LEN + 1

# The engine rejects archives with no frame data, even though the trailer
# alone would fit in TRAILER_SIZE bytes.
MIN_ARCHIVE_SIZE = TRAILER_SIZE + 1
