"""Read an initial idea from a markdown file with optional YAML frontmatter."""

from pathlib import Path

import frontmatter

_KNOWN_KEYS = {"turns", "plan", "marketing", "theme"}


def parse_idea_file(file_path: Path) -> tuple[str, dict]:
    """Parse a markdown idea file.

    Returns:
        (idea, metadata) where idea is the body text and metadata holds the
        recognised frontmatter keys: turns (int), plan (bool), marketing (bool),
        theme (str). If no frontmatter, metadata is {}.

    Raises:
        ValueError: If 'turns' is not a whole number.
    """
    post = frontmatter.load(str(file_path))
    idea = post.content.strip()
    metadata = {k: v for k, v in post.metadata.items() if k in _KNOWN_KEYS}
    if "turns" in metadata:
        try:
            metadata["turns"] = int(metadata["turns"])
        except (TypeError, ValueError):
            raise ValueError(
                f"{file_path.name}: frontmatter 'turns' must be a whole number, got {metadata['turns']!r}"
            ) from None
    for flag in ("plan", "marketing"):
        if flag in metadata:
            metadata[flag] = bool(metadata[flag])
    return idea, metadata
