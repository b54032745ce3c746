# Magic and version
HAPI_MAGIC = 0x49504148  # "HAPI"
BANK_MAGIC = 0x4B4E4142  # "BANK"

HAPI_VERSION = 0x00010000
HAPI2_VERSION = 0x00020000
SUPPORTED_VERSIONS = (HAPI_VERSION, HAPI2_VERSION)

# Header layout: five little-endian u32 fields
HEADER_SIZE = 20
HDR_OFF_HAPI_MAGIC = 0
HDR_OFF_BANK_MAGIC = 4
HDR_OFF_DIRECTORY = 8
HDR_OFF_KEY = 12
HDR_OFF_VERSION = 16


# Directory record: entry_count u32, entry_list_offset u32
# File record: data_offset u32, length u32, compression u8
ENTRY_DESC_SIZE = 9     # name_offset u32, record_offset u32, kind u8

KIND_FILE = 0
KIND_DIR = 1


# Compression ids stored in file records
COMPRESSION_NONE = 0
COMPRESSION_LZ77 = 1
COMPRESSION_ZLIB = 2


# Stream sentinel returned by byte reads past end of data
EOF = -1


DEFAULT_MAX_ENTRIES = 1_000_000
DEFAULT_MAX_DEPTH = 256
