"""Index-based insertion targets for converted blocks."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import List

from .model import Block, Image, ListBlock


class DocumentSink(ABC):
    """A document that accepts blocks at a position.

    ``insert_at`` returns the index right after whatever it inserted; list
    blocks occupy one position per item, every other block occupies one.
    """

    @abstractmethod
    def child_count(self) -> int:
        ...

    @abstractmethod
    def insert_at(self, index: int, block: Block) -> int:
        ...

    def annotate(self, index: int, text: str) -> bool:
        """Attach a comment to the element at ``index``; False if unsupported."""
        return False

    @abstractmethod
    def set_alt_text(self, index: int, description: str, title: str) -> None:
        ...


class BlockArena(DocumentSink):
    """In-memory sink keeping the inserted blocks in a plain list."""

    def __init__(self, supports_annotations: bool = False):
        self.blocks: List[Block] = []
        self.annotations: dict[int, str] = {}
        self.supports_annotations = supports_annotations

    def child_count(self) -> int:
        return len(self.blocks)

    def insert_at(self, index: int, block: Block) -> int:
        if isinstance(block, ListBlock):
            for offset, item in enumerate(block.items):
                self.blocks.insert(index + offset, ListBlock(items=[item], ordered=block.ordered))
            return index + len(block.items)
        self.blocks.insert(index, block)
        return index + 1

    def annotate(self, index: int, text: str) -> bool:
        if not self.supports_annotations:
            return False
        self.annotations[index] = text
        return True

    def set_alt_text(self, index: int, description: str, title: str) -> None:
        image = self.blocks[index]
        if not isinstance(image, Image):
            raise TypeError(f"Element at {index} is not an image")
        self.blocks[index] = dataclasses.replace(image, alt_text=description, title=title)
