"""Display title synthesis from tag metadata."""

from pathlib import Path

UNSET = "<unset>"


def _split_counted(value: str) -> tuple[str, str | None]:
    """Split an ID3-style ``"3/12"`` value into number and total."""
    number, sep, total = value.partition("/")
    return number.strip(), (total.strip() or None) if sep else None


def normalize_tags(tags: dict[str, str]) -> dict[str, str]:
    """Lower-case keys, drop empty values and split ``n/total`` numbers."""
    norm = {k.lower(): v.strip() for k, v in tags.items() if v and v.strip()}

    if "track" in norm:
        norm["track"], _ = _split_counted(norm["track"])
    if "disc" in norm:
        disc, total = _split_counted(norm["disc"])
        norm["disc"] = disc
        if total and "totaldiscs" not in norm:
            norm["totaldiscs"] = total
    return {k: v for k, v in norm.items() if v}


def synthesize_title(tags: dict[str, str], filename: str | Path) -> str:
    """Build ``artist / album / [disc-][track. ]title`` from tags.

    Falls back to the bare file name when there is no ``title`` tag. The disc
    prefix is only used for multi-disc releases (``totaldiscs != "1"``).
    """
    tags = normalize_tags(tags)
    if "title" not in tags:
        return Path(filename).name

    title = tags["title"]
    if "track" in tags:
        title = f"{tags['track']}. {title}"
        if "disc" in tags and tags.get("totaldiscs") != "1":
            title = f"{tags['disc']}-{title}"

    artist = tags.get("artist", UNSET)
    album = tags.get("album", UNSET)
    return f"{artist} / {album} / {title}"
