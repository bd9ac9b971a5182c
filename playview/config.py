from __future__ import annotations

from dataclasses import dataclass

ALL_LAYERS = -1


@dataclass(frozen=True)
class ExportOptions:
    """
    Run configuration handed to the pipeline. The command line builds one of
    these; nothing in the package reads flags or environment variables.
    """

    layer: int = 0
    page: str | None = None
    merge: bool = True
    reveal_hidden: bool = True
    workers: int = 1
    skip_bad_pages: bool = False

    def __post_init__(self) -> None:
        if self.layer < ALL_LAYERS:
            raise ValueError(f"layer must be >= 0 or {ALL_LAYERS} for all layers, got {self.layer}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def wants_layer(self, layer: int) -> bool:
        return layer_selected(self.layer, layer)

    def wants_page(self, name: str) -> bool:
        return not self.page or self.page == name


def layer_selected(selected: int, layer: int) -> bool:
    return selected == ALL_LAYERS or selected == layer
