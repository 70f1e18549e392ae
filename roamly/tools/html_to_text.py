import html as _html
import re


def html_to_text(html: str) -> str:
    if not html:
        return ""
    html = re.sub(r"(?is)<script.*?>.*?</script>", " ", html)
    html = re.sub(r"(?is)<style.*?>.*?</style>", " ", html)
    html = re.sub(r"(?is)<!--.*?-->", " ", html)
    text = re.sub(r"(?s)<[^>]*>", " ", html)
    text = _html.unescape(text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def clean_fragment(fragment: str) -> str:
    """Strip tags and entities from a short markup fragment (a title, a snippet)."""
    if not fragment:
        return ""
    text = re.sub(r"(?s)<[^>]*>", "", fragment)
    text = _html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()
