"""
Receipt file naming.

The stored receipt is named after the application title text
(``appName``, else the legacy ``ServiceName``), falling back to the
application identifier. The name is made filesystem-safe and then
percent-encoded so it is usable as a single URL path segment.
"""

import re
from typing import Optional
from urllib.parse import quote

from receipt.app.schemas.platform import TextResource


TITLE_TEXT_IDS = ("appName", "ServiceName")

# Characters rejected in file names on common filesystems.
_INVALID_FILENAME_CHARS = re.compile(r'[\x00-\x1f"*/:<>?\\|]')


def title_text(texts: Optional[TextResource]) -> Optional[str]:
    if texts is None:
        return None
    for text_id in TITLE_TEXT_IDS:
        element = texts.find(text_id)
        if element is not None and element.value:
            return element.value
    return None


def as_file_name(name: str) -> str:
    return _INVALID_FILENAME_CHARS.sub("_", name)


def derive_pdf_file_name(app: str, texts: Optional[TextResource]) -> str:
    """
    >>> derive_pdf_file_name("my-app", None)
    'my-app.pdf'
    """
    title = title_text(texts)
    file_name = f"{title if title else app}.pdf"
    return quote(as_file_name(file_name), safe="")
