"""
Shared constants for ldaview.
"""

PAYLOAD_SCHEMA_VERSION = 1
DEFAULT_TERMS_PER_TOPIC = 30
DEFAULT_LAMBDA_STEP = 0.01
DEFAULT_ROW_SUM_TOLERANCE = 1e-9
DEFAULT_MIN_TERM_COUNT = 5
DEFAULT_ALPHA = 0.02
DEFAULT_ETA = 0.02
MDS_METHOD_PCOA = "pcoa"
LOG_PREFIX = "[ldaview]"
