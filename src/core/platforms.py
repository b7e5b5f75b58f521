"""Platform registry.

Static classification tables for the external services a workflow can
reference through ``{{user.<platform>}}`` variables or module paths.

Every lookup is total: unknown platforms are classified as ``api_key``,
get a display name with the first character capitalized and the generic
``Key`` icon. Adding a platform means adding rows here, nothing else.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class CredentialType(str, Enum):
    """How a platform's credential is obtained."""

    OAUTH = "oauth"  # User authorization flow, possibly several accounts
    API_KEY = "api_key"  # Named secret pasted by the user


@dataclass(frozen=True)
class PlatformClassification:
    """Classification and presentation metadata for one platform."""

    platform: str
    type: CredentialType
    display_name: str
    icon: str


DEFAULT_ICON = "Key"

# Platforms requiring an authorization-grant flow; everything else is an API key.
OAUTH_PLATFORMS: frozenset[str] = frozenset(
    {
        "twitter",
        "youtube",
        "instagram",
        "discord",
        "telegram",
        "github",
        "tiktok",
        "vimeo",
        "shopify",
        "medium",
        "linkedin",
        "facebook",
        "reddit",
        "google",
        "notion",
    }
)

# (display name, icon) per platform slug. Icons are lucide icon names.
_PLATFORM_ROWS: dict[str, tuple[str, str]] = {
    # Social
    "twitter": ("Twitter", "Twitter"),
    "youtube": ("YouTube", "Youtube"),
    "instagram": ("Instagram", "Instagram"),
    "discord": ("Discord", "MessageSquare"),
    "telegram": ("Telegram", "Send"),
    "reddit": ("Reddit", "MessageSquare"),
    "linkedin": ("LinkedIn", "Linkedin"),
    "facebook": ("Facebook", "Facebook"),
    # Developer platforms
    "github": ("GitHub", "Github"),
    "rapidapi": ("RapidAPI", "Code"),
    # AI
    "openai": ("OpenAI", "Sparkles"),
    "anthropic": ("Anthropic", "Zap"),
    "cohere": ("Cohere", "Sparkles"),
    "mubert": ("Mubert", "Music"),
    "suno": ("Suno", "AudioLines"),
    "runway-video": ("Runway Video", "Video"),
    "replicate-video": ("Replicate Video", "Clapperboard"),
    "heygen-advanced": ("HeyGen Advanced", "UserCircle2"),
    "gemini": ("Google Gemini", "Sparkles"),
    "mistral": ("Mistral AI", "Wind"),
    "groq": ("Groq", "Cpu"),
    "perplexity": ("Perplexity", "Search"),
    # Payments and data
    "stripe": ("Stripe", "CreditCard"),
    "airtable": ("Airtable", "Database"),
    "sendgrid": ("SendGrid", "Mail"),
    "slack": ("Slack", "MessageCircle"),
    # Video automation
    "runway": ("Runway", "Video"),
    "heygen": ("HeyGen", "UserCircle"),
    "synthesia": ("Synthesia", "UserSquare"),
    "whisper": ("OpenAI Whisper", "Mic"),
    "elevenlabs": ("ElevenLabs", "Volume2"),
    "cloudinary": ("Cloudinary", "Cloud"),
    "vimeo": ("Vimeo", "PlayCircle"),
    "tiktok": ("TikTok", "Music"),
    # Business
    "hubspot": ("HubSpot", "Building2"),
    "salesforce": ("Salesforce", "CloudLightning"),
    "pipedrive": ("Pipedrive", "TrendingUp"),
    "quickbooks": ("QuickBooks", "Calculator"),
    "freshbooks": ("FreshBooks", "FileText"),
    "xero": ("Xero", "Receipt"),
    "docusign": ("DocuSign", "FileSignature"),
    "hellosign": ("HelloSign", "PenTool"),
    # Lead generation
    "hunter": ("Hunter.io", "Search"),
    "apollo": ("Apollo.io", "Target"),
    "clearbit": ("Clearbit", "Users"),
    "zoominfo": ("ZoomInfo", "Telescope"),
    "lusha": ("Lusha", "UserCheck"),
    "proxycurl": ("Proxycurl", "Linkedin"),
    "phantombuster": ("PhantomBuster", "Bot"),
    "apify": ("Apify", "Bug"),
    # E-commerce
    "shopify": ("Shopify", "ShoppingBag"),
    "woocommerce": ("WooCommerce", "ShoppingCart"),
    "amazon-sp": ("Amazon Seller", "Package"),
    "etsy": ("Etsy", "Store"),
    "ebay": ("eBay", "Gavel"),
    "square": ("Square", "CreditCard"),
    "printful": ("Printful", "Printer"),
    # Content
    "medium": ("Medium", "BookOpen"),
    "ghost": ("Ghost", "Ghost"),
    "wordpress": ("WordPress", "FileEdit"),
    "unsplash": ("Unsplash", "Image"),
    "pexels": ("Pexels", "Camera"),
    "canva": ("Canva", "Palette"),
    "bannerbear": ("Bannerbear", "Frame"),
    "placid": ("Placid", "Layers"),
    # Developer tools
    "github-actions": ("GitHub Actions", "GitBranch"),
    "circleci": ("CircleCI", "Circle"),
    "jenkins": ("Jenkins", "Wrench"),
    "vercel": ("Vercel", "Triangle"),
    "netlify": ("Netlify", "Hexagon"),
    "heroku": ("Heroku", "Server"),
    "datadog": ("Datadog", "Activity"),
    "sentry": ("Sentry", "AlertTriangle"),
    # Data processing
    "snowflake": ("Snowflake", "Snowflake"),
    "bigquery": ("BigQuery", "BarChart"),
    "redshift": ("Redshift", "ArrowRightLeft"),
    "kafka": ("Kafka", "Workflow"),
    "rabbitmq": ("RabbitMQ", "MessageSquare"),
    "huggingface": ("Hugging Face", "Brain"),
    "replicate": ("Replicate", "Copy"),
    # Communication
    "twilio": ("Twilio", "Phone"),
    "whatsapp": ("WhatsApp", "MessageCircle"),
    "firebase": ("Firebase", "Flame"),
    "onesignal": ("OneSignal", "Bell"),
    "zendesk": ("Zendesk", "LifeBuoy"),
    "freshdesk": ("Freshdesk", "Headphones"),
    "intercom": ("Intercom", "MessagesSquare"),
    # Databases and documents
    "mongodb": ("MongoDB", "Database"),
    "postgresql": ("PostgreSQL", "Database"),
    "mysql": ("MySQL", "Database"),
    "notion": ("Notion", "FileText"),
    "google": ("Google", "Chrome"),
    "google-sheets": ("Google Sheets", "Sheet"),
    "google-drive": ("Google Drive", "HardDrive"),
    "google-calendar": ("Google Calendar", "Calendar"),
    "gmail": ("Gmail", "Mail"),
    "dropbox": ("Dropbox", "Box"),
    # Productivity
    "trello": ("Trello", "Trello"),
    "asana": ("Asana", "CheckSquare"),
    "jira": ("Jira", "Ticket"),
    "mailchimp": ("Mailchimp", "Mail"),
    "pinterest": ("Pinterest", "Pin"),
    "spotify": ("Spotify", "Music"),
    # Utilities
    "resend": ("Resend", "Mail"),
}

DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {platform: row[0] for platform, row in _PLATFORM_ROWS.items()}
)
ICONS: Mapping[str, str] = MappingProxyType(
    {platform: row[1] for platform, row in _PLATFORM_ROWS.items()}
)


def is_oauth_platform(platform: str) -> bool:
    """Check whether a platform authenticates through an OAuth grant."""
    return platform in OAUTH_PLATFORMS


def get_credential_type(platform: str) -> CredentialType:
    """Get the credential type for a platform (``api_key`` when unknown)."""
    return CredentialType.OAUTH if is_oauth_platform(platform) else CredentialType.API_KEY


def get_display_name(platform: str) -> str:
    """Get a user-friendly platform name.

    Unknown platforms only get their first character upper-cased,
    e.g. ``made-up-platform`` -> ``Made-up-platform``.
    """
    name = DISPLAY_NAMES.get(platform)
    if name is not None:
        return name
    return platform[:1].upper() + platform[1:]


def get_icon(platform: str) -> str:
    """Get the icon name for a platform, ``Key`` when unknown."""
    return ICONS.get(platform, DEFAULT_ICON)


def classify(platform: str) -> PlatformClassification:
    """Classify a platform token.

    Args:
        platform: Platform slug (e.g. 'twitter', 'openai')

    Returns:
        Credential type with display metadata
    """
    return PlatformClassification(
        platform=platform,
        type=get_credential_type(platform),
        display_name=get_display_name(platform),
        icon=get_icon(platform),
    )


def list_known_platforms() -> list[PlatformClassification]:
    """List every platform with registry metadata, sorted by slug."""
    known = set(DISPLAY_NAMES) | OAUTH_PLATFORMS
    return [classify(platform) for platform in sorted(known)]
