"""
Metadata resolution for experiments that arrive without a ``metadata.txt``.

The resolver is a small state machine::

    START -> EMPTY_CHOSEN | AI_CHOSEN | CUSTOM_CHOSEN -> RESOLVED

The choice itself comes from the caller (the CLI prompts for it); the
resolver only validates it, builds the text and writes the sidecar file.
After a successful ``resolve`` the sidecar exists and holds exactly the
returned text.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from imarchive.core.errors import InvalidMetadataChoice
from imarchive.core.utils import encode_text

logger = logging.getLogger(__name__)

ImageLabeler = Callable[[Path], str]


class MetadataChoice(str, Enum):
    """The three ways an experiment can get its metadata."""
    EMPTY = "empty"
    AI = "ai"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union["MetadataChoice", int, str]) -> "MetadataChoice":
        """Accept a menu number (1-3) or a choice name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text in _MENU_NUMBERS:
            return _MENU_NUMBERS[text]
        try:
            return cls(text)
        except ValueError:
            raise InvalidMetadataChoice(value) from None


_MENU_NUMBERS = {
    "1": MetadataChoice.EMPTY,
    "2": MetadataChoice.AI,
    "3": MetadataChoice.CUSTOM,
}

MENU = (
    "1) Use empty metadata file\n"
    "2) AI generate metadata based on images\n"
    "3) Add custom metadata file content"
)


@dataclass(frozen=True)
class MetadataSelection:
    """An already-made metadata decision, plus the text for the custom option."""
    choice: MetadataChoice
    custom_text: str = ""

    @classmethod
    def of(cls, choice, custom_text: str = "") -> "MetadataSelection":
        return cls(MetadataChoice.parse(choice), custom_text)


MetadataSelector = Callable[[], MetadataSelection]


def fixed_selection(choice, custom_text: str = "") -> MetadataSelector:
    """A selector that always answers with the same selection."""
    selection = MetadataSelection.of(choice, custom_text)
    return lambda: selection


class ResolverState(str, Enum):
    START = "start"
    EMPTY_CHOSEN = "empty_chosen"
    AI_CHOSEN = "ai_chosen"
    CUSTOM_CHOSEN = "custom_chosen"
    RESOLVED = "resolved"


_STATE_FOR_CHOICE = {
    MetadataChoice.EMPTY: ResolverState.EMPTY_CHOSEN,
    MetadataChoice.AI: ResolverState.AI_CHOSEN,
    MetadataChoice.CUSTOM: ResolverState.CUSTOM_CHOSEN,
}


class MetadataResolver:
    """Decide and materialize the metadata text for one batch of images."""

    def __init__(self, sidecar_path: Union[str, Path], labeler: Optional[ImageLabeler] = None):
        self.sidecar_path = Path(sidecar_path)
        self.labeler = labeler
        self.state = ResolverState.START
        self.text: Optional[str] = None
        self._custom_text = ""

    def choose(self, choice, custom_text: str = "") -> ResolverState:
        """
        Move from START to the state for ``choice``.

        An invalid choice raises ``InvalidMetadataChoice`` and leaves the
        machine in START so the caller can ask again.
        """
        if self.state is not ResolverState.START:
            raise RuntimeError(f"Metadata already chosen (state: {self.state.value})")
        parsed = MetadataChoice.parse(choice)
        self._custom_text = custom_text
        self.state = _STATE_FOR_CHOICE[parsed]
        logger.debug("Metadata choice %s -> %s", parsed.value, self.state.value)
        return self.state

    def resolve(self, image_paths: Iterable[Union[str, Path]] = ()) -> str:
        """Build the metadata text for the chosen option and write the sidecar."""
        if self.state is ResolverState.START:
            raise RuntimeError("No metadata choice has been made")
        if self.state is ResolverState.RESOLVED:
            return self.text

        if self.state is ResolverState.EMPTY_CHOSEN:
            text = ""
        elif self.state is ResolverState.AI_CHOSEN:
            text = self._label_images([Path(p) for p in image_paths])
        else:
            # one line only
            text = self._custom_text.splitlines()[0] if self._custom_text else ""

        self.sidecar_path.write_bytes(encode_text(text))
        self.text = text
        self.state = ResolverState.RESOLVED
        logger.info("Metadata file created at %s (%d characters)", self.sidecar_path, len(text))
        return text

    def _label_images(self, image_paths) -> str:
        if self.labeler is None:
            logger.warning("No AI labeler configured; writing empty labels")
        lines = []
        for path in image_paths:
            label = self.labeler(path) if self.labeler is not None else ""
            lines.append(f"{path.name}: {label or ''}\n")
        return "".join(lines)


def resolve_metadata(
    sidecar_path: Union[str, Path],
    selection: MetadataSelection,
    image_paths: Iterable[Union[str, Path]] = (),
    labeler: Optional[ImageLabeler] = None,
) -> str:
    """Run the resolver once for an already-made ``selection``."""
    resolver = MetadataResolver(sidecar_path, labeler=labeler)
    resolver.choose(selection.choice, selection.custom_text)
    return resolver.resolve(image_paths)
