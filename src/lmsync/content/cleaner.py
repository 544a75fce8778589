# src/lmsync/content/cleaner.py
"""HTML content cleaner for distraction-free reading.

Turns raw LMS HTML into sanitized HTML. Passes run in a fixed order and
each later pass assumes the earlier ones ran:

  1. scripts, styles and stylesheet links
  2. navigation and metadata chrome
  3. embedded frames
  4. vendor boilerplate found by phrase, removed with its container
  5. spacer, icon and boilerplate images
  6. empty paragraphs
  7. double-encoded entities, and whitespace left behind by removals

The output is already in the form html.parser gives it when read back, and
every pass only removes markup, so cleaning is idempotent. clean() never
raises: on any failure the original HTML is returned unchanged.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from lmsync.content.rules import DEFAULT_RULES, CleaningRules

logger = logging.getLogger(__name__)

_PARSER = "html.parser"
_SPACER_PREFIX = "data:image/gif;base64"
# Whitespace html.parser collapses; pre/textarea keep theirs.
_ASCII_SPACES = "\x20\x0a\x09\x0c\x0d"
_PRESERVE_WHITESPACE = ("pre", "textarea")
# Elements never removed by the phrase pass, it would drop the whole page.
_ROOT_TAGS = frozenset({"html", "head", "body"})


def clean(raw_html: str, rules: CleaningRules = DEFAULT_RULES) -> str:
    """Sanitize raw HTML.

    Args:
        raw_html: HTML as served by the LMS.
        rules: Selector and phrase table. Defaults to DEFAULT_RULES.

    Returns:
        Cleaned HTML, or raw_html itself if cleaning failed.
    """
    if not raw_html:
        return ""

    try:
        soup = BeautifulSoup(raw_html, _PARSER)

        _remove_scripts_and_styles(soup)
        _remove_navigation(soup, rules)
        _remove_frames(soup)
        _remove_unwanted_blocks(soup, rules)
        if rules.drop_duplicate_headings:
            _remove_duplicate_headings(soup)
        _clean_images(soup, rules)
        _remove_empty_paragraphs(soup, rules)

        _normalize_strings(soup)
        result = normalize_entities(str(soup))
    except Exception:
        logger.exception("Cleaning failed, serving original HTML")
        return raw_html

    logger.debug("Cleaned HTML: %d -> %d chars", len(raw_html), len(result))
    return result


def normalize_entities(html: str) -> str:
    """Repair entity double-encoding produced by the LMS serializer.

    Collapses any run of "&amp;amp;" down to "&amp;" and turns every
    non-breaking space spelling into a plain space.
    """
    result = html
    while "&amp;amp;" in result:
        result = result.replace("&amp;amp;", "&amp;")
    result = result.replace("&amp;nbsp;", " ")
    result = result.replace("&nbsp;", " ")
    return result.replace("\xa0", " ")


# ----------------------------------------------------------------------
# Passes
# ----------------------------------------------------------------------


def _remove_scripts_and_styles(soup: BeautifulSoup) -> None:
    for el in soup.find_all(["script", "style", "noscript"]):
        _drop(el)
    for link in soup.find_all("link"):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "stylesheet" in (r.lower() for r in rel):
            _drop(link)


def _remove_navigation(soup: BeautifulSoup, rules: CleaningRules) -> None:
    for selector in rules.navigation_selectors:
        for el in soup.select(selector):
            _drop(el)


def _remove_frames(soup: BeautifulSoup) -> None:
    for el in soup.find_all(["iframe", "frame", "frameset"]):
        _drop(el)


def _remove_unwanted_blocks(soup: BeautifulSoup, rules: CleaningRules) -> None:
    """Remove boilerplate identified by phrase.

    For each phrase, only the deepest elements mentioning it act: an element
    whose direct child also mentions the phrase is skipped in favour of
    that child. The acting element takes its nearest container (or itself)
    with it; without a container its text wrapper goes, else the element.
    """
    container_selector = ", ".join(rules.container_selectors)
    wrapper_selector = ", ".join(rules.wrapper_selectors)

    for phrase in rules.unwanted_phrases:
        candidates = [el for el in soup.find_all(True) if _mentions(el, phrase)]
        for el in candidates:
            if el.decomposed or el.name in _ROOT_TAGS:
                continue
            if not _mentions(el, phrase):
                continue
            if any(
                _mentions(child, phrase)
                for child in el.find_all(True, recursive=False)
            ):
                continue

            container = el.css.closest(container_selector) if container_selector else None
            if container is not None and container.name not in _ROOT_TAGS:
                logger.debug("Removing <%s> container for %r", container.name, phrase)
                _drop(container)
                continue

            parent = el.parent
            if (
                wrapper_selector
                and isinstance(parent, Tag)
                and not isinstance(parent, BeautifulSoup)
                and parent.name not in _ROOT_TAGS
                and parent.css.match(wrapper_selector)
            ):
                _drop(parent)
            else:
                _drop(el)


def _remove_duplicate_headings(soup: BeautifulSoup) -> None:
    seen: set[tuple[str, str]] = set()
    for heading in soup.find_all(["h2", "h3"]):
        text = normalize_entities(heading.get_text()).strip()
        if not text:
            continue
        key = (heading.name, text)
        if key in seen:
            _drop(heading)
        else:
            seen.add(key)


def _clean_images(soup: BeautifulSoup, rules: CleaningRules) -> None:
    container_selector = ", ".join(rules.image_container_selectors)
    for img in soup.find_all("img"):
        if img.decomposed:
            continue
        src = (img.get("src") or "").strip()
        classes = " ".join(img.get("class") or []).lower()
        src_lower = src.lower()

        if (
            not src
            or src_lower.startswith(_SPACER_PREFIX)
            or any(m in src_lower or m in classes for m in rules.icon_markers)
        ):
            _drop(img)
            continue

        if container_selector and img.css.closest(container_selector) is not None:
            _drop(img)


def _remove_empty_paragraphs(soup: BeautifulSoup, rules: CleaningRules) -> None:
    for p in soup.find_all("p"):
        if p.decomposed:
            continue
        text = normalize_entities(p.get_text()).strip()
        if not text and p.find(list(rules.media_tags)) is None:
            _drop(p)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def _normalize_strings(soup: BeautifulSoup) -> None:
    """Rewrite text nodes into the form a second parse would give them.

    Removing an element leaves the whitespace around it as separate strings.
    html.parser reads a whitespace-only run back as a single newline (or a
    single space when the run has no newline), so merge and collapse here.
    """
    soup.smooth()
    for string in list(soup.find_all(string=True)):
        if isinstance(string, PreformattedString):
            continue
        text = _normalize_text(str(string))
        if (
            text
            and not text.strip(_ASCII_SPACES)
            and string.find_parent(_PRESERVE_WHITESPACE) is None
        ):
            text = "\n" if "\n" in text else " "
        if text != string:
            string.replace_with(NavigableString(text))


def _normalize_text(text: str) -> str:
    """Text-node counterpart of normalize_entities()."""
    while "&amp;" in text:
        text = text.replace("&amp;", "&")
    return text.replace("&nbsp;", " ").replace("\xa0", " ")


def _mentions(el: Tag, phrase: str) -> bool:
    """True if the element's text or its own attribute values hold phrase."""
    if phrase in normalize_entities(el.get_text()):
        return True
    for value in el.attrs.values():
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        if phrase in normalize_entities(str(value)):
            return True
    return False


def _drop(el: Tag) -> None:
    if not el.decomposed:
        el.decompose()
