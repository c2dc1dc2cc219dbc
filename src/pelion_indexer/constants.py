# ==========================================
# 1. Environment Variables
# ==========================================
ENV_REGION = "AWS_REGION"
ENV_DOMAIN = "ELASTICSEARCH_DOMAIN"
ENV_TIMEOUT = "ELASTICSEARCH_TIMEOUT"
ENV_LOG_MODE = "LOG_MODE"

DEFAULT_TIMEOUT = 30  # seconds

# ==========================================
# 2. Search Engine
# ==========================================
SIGNING_SERVICE = "es"
BULK_PATH = "/_bulk"
DOCUMENT_TYPE = "_doc"
RESPONSE_CHUNK_SIZE = 8192

INDEX_NOTIFICATIONS = "notifications"
INDEX_DEVICES = "devices"
INDEX_REGISTRATIONS = "registrations"

REGISTERED = 1
EXPIRED = 0

# Base64 payloads are decoded to text with this codec
PAYLOAD_ENCODING = "utf-8"

# ==========================================
# 3. Callback Body Keys
# ==========================================
KEY_NOTIFICATIONS = "notifications"
KEY_REGISTRATIONS = "registrations"
KEY_REG_UPDATES = "reg-updates"
KEY_EXPIRATIONS = "registrations-expired"

# ==========================================
# 4. Webhook
# ==========================================
WEBHOOK_METHOD = "PUT"
SUCCESS = "success"
