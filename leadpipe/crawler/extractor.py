from __future__ import annotations

import html
import re
import urllib.parse
from typing import List, Set, Union

from bs4 import BeautifulSoup, Comment

_EMAIL_RE = re.compile(r"\b[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}\b")
_PHONE_RE = re.compile(r"(\+?\d[\d\s-]{7,}\d)")
_SPACES = re.compile(r"\s+")

_OBFUSCATED = [
    (re.compile(r"\s*\[\s*at\s*\]\s*", re.I), "@"),
    (re.compile(r"\s*\(\s*at\s*\)\s*", re.I), "@"),
    (re.compile(r"\s*\[\s*dot\s*\]\s*", re.I), "."),
    (re.compile(r"\s*\(\s*dot\s*\)\s*", re.I), "."),
]

# Vendor / template domains that are never a lead's inbox
_BLOCKLIST_EXACT = {
    "robot.zapier.com",
    "sentry.wixpress.com",
}

_BLOCKLIST_DOMAIN_SUBSTR = (
    "wixpress.com",
    "sentry.io",
    "sentry-next.",
    "example.com",
    "godaddy.com",
    "domain.com",
)

_BAD_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".css", ".js")

_INVISIBLE_TAGS = ("script", "style", "noscript", "template")

Markup = Union[str, BeautifulSoup]


def as_soup(markup: Markup) -> BeautifulSoup:
    if isinstance(markup, BeautifulSoup):
        return markup
    return BeautifulSoup(markup or "", "html.parser")


def _deobfuscate(text: str) -> str:
    out = text
    for rx, repl in _OBFUSCATED:
        out = rx.sub(repl, out)
    return out


def _is_junk_email(e: str) -> bool:
    low = (e or "").strip().lower()
    if not low or "@" not in low:
        return True
    if low.endswith(_BAD_SUFFIXES):
        return True

    dom = low.split("@", 1)[1].strip()
    if not dom or dom in _BLOCKLIST_EXACT:
        return True
    return any(bad in dom for bad in _BLOCKLIST_DOMAIN_SUBSTR)


def _clean_candidate(raw: str) -> str:
    # %20info@... shows up in badly encoded mailto links
    s = urllib.parse.unquote((raw or "").strip())
    s = s.strip(" \t\r\n\"'<>[](){}.,;:")
    return s.lower().strip()


def extract_emails(raw_html: str) -> List[str]:
    """
    Emails found in raw HTML, first-seen order, de-duplicated.

    - unescapes HTML entities
    - undoes `[at]` / `(dot)` obfuscation
    - parses mailto: links (query string dropped)
    - drops vendor/junk domains and asset filenames that look like emails
    """
    if not raw_html:
        return []

    text = _deobfuscate(html.unescape(raw_html))

    found: List[str] = []
    seen: Set[str] = set()

    def _add(cand: str) -> None:
        if cand and cand not in seen and not _is_junk_email(cand):
            seen.add(cand)
            found.append(cand)

    for m in _EMAIL_RE.findall(text):
        _add(_clean_candidate(m))

    for m in re.findall(r"mailto:([^\"'\s>]+)", text, flags=re.I):
        cand = _clean_candidate(m.split("?")[0])
        if _EMAIL_RE.fullmatch(cand):
            _add(cand)

    # "20info@x.com" next to "info@x.com" is an encoding artifact
    artifacts = {
        e for e in found
        if any(len(e) > n and e[:n].isdigit() and e[n:] in seen for n in (1, 2, 3))
    }
    return [e for e in found if e not in artifacts]


def extract_text(markup: Markup) -> str:
    """Visible body text with whitespace collapsed."""
    soup = as_soup(markup)
    root = soup.body or soup
    parts = [
        s for s in root.find_all(string=True)
        if not isinstance(s, Comment) and s.parent is not None and s.parent.name not in _INVISIBLE_TAGS
    ]
    return _SPACES.sub(" ", " ".join(parts)).strip()


def extract_phones(markup: Markup) -> List[str]:
    """Phone-number-looking runs from visible text plus tel: links, first-seen order."""
    soup = as_soup(markup)
    out: List[str] = []

    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.lower().startswith("tel:"):
            num = urllib.parse.unquote(href[4:]).strip()
            if num and num not in out:
                out.append(num)

    for m in _PHONE_RE.findall(extract_text(soup)):
        num = m.strip()
        if num not in out:
            out.append(num)
    return out
