# publisher/sanitize.py
import bleach

ALLOWED_TAGS = frozenset([
    'p', 'br', 'strong', 'em', 'u', 'a',
    'ul', 'ol', 'li', 'h1', 'h2', 'h3',
    'code', 'pre', 'blockquote', 'img',
])
ALLOWED_ATTRS = {
    'a': ['href', 'title'],
    'img': ['src', 'alt', 'title'],
}
ALLOWED_PROTOCOLS = frozenset(['http', 'https', 'mailto'])


def sanitize_content(content: str) -> str:
    """Keep basic formatting markup, strip everything else (XSS)."""
    return bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def sanitize_title(title: str) -> str:
    """Titles are plain text: every tag is removed."""
    return bleach.clean(title, tags=set(), strip=True)
