# config.py

# --- Scraper Configuration ---
# Timeout for fetching raw subscription content from a provider (in seconds)
FETCH_TIMEOUT = 10

# User-Agent sent to providers. Some providers only return a node list to known clients.
FETCH_USER_AGENT = "v2rayN/6.23"

# --- Settings Configuration ---
# YAML file read by main.py when --settings is not given
SETTINGS_FILE = "settings.yaml"

# Prefix for settings read from environment variables (e.g. SUB_MaxConfigs)
SETTINGS_ENV_PREFIX = "SUB_"

# --- Built-in defaults ---
# Used as a whole when the settings backend is unreachable or MaxConfigs is absent.
DEFAULT_MAX_CONFIGS = 200

DEFAULT_PROTOCOLS = ["vmess", "vless", "trojan", "ss"]

DEFAULT_PROVIDERS = [
    "https://raw.githubusercontent.com/mahdibland/ShadowsocksAggregator/master/sub/sub_merge.txt",
    "https://raw.githubusercontent.com/awesome-vpn/awesome-vpn/master/all",
    "https://raw.githubusercontent.com/freefq/free/master/v2",
    "https://raw.githubusercontent.com/Pawdroid/Free-servers/main/sub",
    "https://raw.githubusercontent.com/aiboboxx/v2rayfree/main/v2",
]

DEFAULT_ALPN_LIST = ["h2", "http/1.1", "h2,http/1.1"]

DEFAULT_FINGERPRINTS = ["chrome", "firefox", "safari", "edge", "ios", "android", "randomized"]

# --- Decoder / Validator Configuration ---
# Schemes accepted from flat (plain or base64) subscriptions
SUPPORTED_SCHEMES = ["vmess", "vless", "trojan", "ss"]

# Transport networks a config may declare
SUPPORTED_NETWORKS = ["tcp", "ws", "grpc", "http", "h2"]

# --- Allocation Configuration ---
# Number of redistribution passes over the provider buckets
ALLOCATION_PASSES = 5

# A bucket absorbs ceil(remaining / ALLOCATION_ABSORB_DIVISOR) per pass
ALLOCATION_ABSORB_DIVISOR = 3

# Generated VLESS configs: max_count = ceil(max_total / VLESS_SHARE_DIVISOR)
VLESS_SHARE_DIVISOR = 20

# --- Generator / Merger Configuration ---
VLESS_TLS_PORTS = [443, 8443, 2053, 2083, 2087, 2096]
VLESS_WS_PATH = "/vless-ws/?ed=2048"
MERGED_PORT = 443

# --- Output Configuration ---
# Directory to save the output files
OUTPUT_DIR = "output"

# One share link per line
PLAIN_TEXT_OUTPUT_FILENAME = "sub.txt"

# Same content, base64 encoded (regular subscription format)
BASE64_OUTPUT_FILENAME = "sub_base64.txt"

# Clash YAML document
CLASH_OUTPUT_FILENAME = "clash_config.yaml"
