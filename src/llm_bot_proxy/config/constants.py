"""
Constants for AI visitor classification and the content proxy wire formats.
"""

# =============================================================================
# AI Visitor Classification
# =============================================================================

# Ordered: the first pattern that matches the user-agent wins.
# Patterns are matched case-insensitively with re.search.
AI_VISITOR_PATTERNS = {
    # OpenAI
    "ChatGPT-User": {"pattern": r"ChatGPT-User/1\.0", "provider": "OpenAI"},
    "GPTBot": {"pattern": r"GPTBot/1\.0", "provider": "OpenAI"},
    # Google
    "Google-Extended": {"pattern": r"Google-Extended", "provider": "Google"},
    # Microsoft
    "BingPreview": {"pattern": r"bingpreview", "provider": "Microsoft"},
    # Perplexity
    "PerplexityBot": {"pattern": r"PerplexityBot", "provider": "Perplexity"},
    # Anthropic
    "Claude-User": {"pattern": r"Claude-User", "provider": "Anthropic"},
    "Claude-Web": {"pattern": r"Claude-Web", "provider": "Anthropic"},
    "ClaudeBot": {"pattern": r"ClaudeBot", "provider": "Anthropic"},
}

# Query parameter that lets a caller force the ChatGPT variant
USER_AGENT_OVERRIDE_PARAM = "user-agent"
CHATGPT_OVERRIDE_TOKEN = "chatgpt"

# =============================================================================
# Routing
# =============================================================================

# Paths with these suffixes are never HTML and skip classification entirely
STATIC_PASSTHROUGH_EXTENSIONS = (".txt", ".xml")

# Set on every fetch this proxy issues; seeing it inbound means we called ourselves
LOOP_PREVENTION_HEADER = "X-Internal-Fetch"
LOOP_PREVENTION_VALUE = "true"

# Via pseudonym added to every outbound request; an inbound request already
# carrying it has come back through this proxy and is refused
VIA_HEADER = "Via"
VIA_PSEUDONYM = "llm-bot-proxy"
VIA_PROTOCOL = "1.1"

# Element pulled out of the secondary-store page
DEFAULT_FRAGMENT_ELEMENT_ID = "optimized-for-ai"

# Headers that describe a single connection and must not be forwarded
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# Bodies on the AI path are decoded as text, so only ask for what httpx decodes
DECODABLE_ACCEPT_ENCODING = "gzip, deflate"

# Methods whose requests are re-issued without a body
BODYLESS_METHODS = frozenset({"GET", "HEAD"})

# =============================================================================
# Response Finalization
# =============================================================================

AI_VARIANT_CACHE_CONTROL = "private, no-store, max-age=0"
AI_VARIANT_PRAGMA = "no-cache"

# =============================================================================
# Secondary Store & Telemetry
# =============================================================================

DEFAULT_ALT_ORIGIN_TEMPLATE = (
    "https://salespeak-public-serving.s3.amazonaws.com/{organization_id}"
)
DEFAULT_TELEMETRY_ENDPOINT = (
    "https://22i9zfydr3.execute-api.us-west-2.amazonaws.com/prod/event_stream"
)

TELEMETRY_EVENT_TYPE = "chatgpt_user_agent"
TELEMETRY_LAUNCHER = "proxy"
TELEMETRY_CAMPAIGN_ID = "00000000-0000-0000-0000-000000000000"
TELEMETRY_USER_AGENT = "PostmanRuntime/7.32.2"
UNKNOWN_CLIENT_VALUE = "unknown"

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_FETCH_TIMEOUT_SECONDS = 5.0
DEFAULT_TELEMETRY_DRAIN_SECONDS = 5.0
DEFAULT_CLIENT_IP_HEADER = "CF-Connecting-IP"
DEFAULT_COUNTRY_HEADER = "CF-IPCountry"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
