# src/lmsync/content/rules.py
"""Rule table driving the content cleaner.

Vendor boilerplate has no stable selector, so it is matched by phrase and
removed by climbing to a known container. The phrases and selectors live
here as data so the ruleset can change without touching the pipeline.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CleaningRules(BaseModel):
    """Configurable selectors and phrases for clean()."""

    model_config = ConfigDict(frozen=True)

    # Step 2: navigation and metadata chrome
    navigation_selectors: tuple[str, ...] = (
        "nav",
        ".navigation",
        ".breadcrumb",
        "#page-header",
        ".modified",
        ".activity-navigation",
    )

    # Step 4: third-party reading-tool promos
    third_party_phrases: tuple[str, ...] = (
        "Sign in to Kortext",
        "Open book in new window",
        "You will only be able to access the book on Kortext",
        "kortext.com",
        "launchReader",
        "emailKortextSupport",
    )

    # Step 4: prescribed-reading boilerplate
    prescribed_reading_phrases: tuple[str, ...] = ("Prescribed Reading",)

    # Step 4: nearest matching ancestor is removed with the phrase
    container_selectors: tuple[str, ...] = (
        ".no-overflow",
        ".box",
        ".generalbox",
        ".prescribed-reading",
    )

    # Step 4 fallback: text wrappers removed instead of the bare element
    wrapper_selectors: tuple[str, ...] = ("p", "div.text_to_html")

    # Step 5: images inside these are boilerplate
    image_container_selectors: tuple[str, ...] = (".prescribed-reading",)

    # Step 5: src/class substrings that mark icons and spacers
    icon_markers: tuple[str, ...] = ("icon", "spacer")

    # Step 6: a paragraph holding any of these is never "empty"
    media_tags: tuple[str, ...] = (
        "img", "iframe", "video", "audio", "object", "embed", "svg", "picture",
    )

    # Drop repeated h2/h3 headings (same level and text), keeping the first.
    drop_duplicate_headings: bool = False

    @property
    def unwanted_phrases(self) -> tuple[str, ...]:
        return self.third_party_phrases + self.prescribed_reading_phrases


DEFAULT_RULES = CleaningRules()
