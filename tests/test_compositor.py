from __future__ import annotations

import io
import logging

import numpy as np
import pytest
from PIL import Image

from conftest import RED, jpeg_bytes, oversized_jpeg
from playview.compositor import Compositor, decode_tile
from playview.entities import TileDescriptor, tile_origin
from playview.errors import DecodeError


def _tile(index: int, grid_x: int, grid_y: int, layer: int = 0) -> TileDescriptor:
    return TileDescriptor(index, grid_x, grid_y, layer, 0, 0, 0, 256, 256)


def _solid(color, size=(256, 256)) -> Image.Image:
    return Image.new("RGBA", size, color + (255,))


def test_decode_returns_rgba_raster():
    raster = decode_tile(jpeg_bytes(RED, size=(256, 128)))
    assert raster.mode == "RGBA"
    assert raster.size == (256, 128)
    r, g, b, a = raster.getpixel((10, 10))
    assert r > 200 and g < 60 and b < 60 and a == 255


def test_decode_is_deterministic():
    data = jpeg_bytes((12, 200, 99))
    assert decode_tile(data).tobytes() == decode_tile(data).tobytes()


@pytest.mark.parametrize(
    "data",
    [b"", b"NOT A JPEG" * 40, jpeg_bytes(RED)[:200]],
    ids=["empty", "garbage", "truncated"],
)
def test_decode_rejects_non_jpeg(data):
    with pytest.raises(DecodeError):
        decode_tile(data)


def test_decode_rejects_other_image_formats():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), RED).save(buffer, format="PNG")
    with pytest.raises(DecodeError):
        decode_tile(buffer.getvalue())


def test_grid_origin():
    assert tile_origin(2, 3) == (512, 768)
    assert _tile(0, 2, 3).origin == (512, 768)


def test_canvas_is_lazy_and_sized_from_header():
    compositor = Compositor("P", 700, 300)
    assert len(compositor) == 0
    compositor.place(_tile(0, 2, 0), _solid((0, 255, 0)))
    layers = dict(compositor.canvases())
    assert list(layers) == [0]
    assert layers[0].size == (700, 300)


def test_place_clips_to_canvas_and_ignores_offscreen_tiles():
    compositor = Compositor("P", 700, 300)
    assert compositor.place(_tile(0, 2, 1), _solid((0, 0, 255)))
    assert not compositor.place(_tile(1, 3, 0), _solid((255, 0, 0)))
    canvas = np.asarray(compositor.canvas(0))
    assert canvas.shape == (300, 700, 4)
    assert tuple(canvas[299, 699]) == (0, 0, 255, 255)
    assert tuple(canvas[255, 511]) == (0, 0, 0, 0)


def test_placement_is_order_independent():
    tiles = [(_tile(0, 0, 0), (255, 0, 0)), (_tile(1, 1, 0), (0, 255, 0)), (_tile(2, 2, 3), (0, 0, 255))]
    results = []
    for ordering in (tiles, list(reversed(tiles))):
        compositor = Compositor("P", 1024, 1024)
        for tile, color in ordering:
            compositor.place(tile, _solid(color))
        results.append(compositor.canvas(0).tobytes())
    assert results[0] == results[1]
    canvas = np.asarray(Image.frombytes("RGBA", (1024, 1024), results[0]))
    assert tuple(canvas[768, 512]) == (0, 0, 255, 255)
    assert tuple(canvas[767, 512]) == (0, 0, 0, 0)


def test_alpha_over_blending():
    compositor = Compositor("P", 256, 256)
    compositor.place(_tile(0, 0, 0), _solid((255, 0, 0)))
    compositor.place(_tile(1, 0, 0), Image.new("RGBA", (256, 256), (0, 0, 255, 0)))
    assert compositor.canvas(0).getpixel((5, 5)) == (255, 0, 0, 255)


def test_layers_get_separate_canvases():
    compositor = Compositor("P", 512, 512)
    compositor.place(_tile(0, 0, 0, layer=1), _solid((255, 0, 0)))
    compositor.place(_tile(1, 0, 0, layer=0), _solid((0, 255, 0)))
    assert [layer for layer, _ in compositor.canvases()] == [0, 1]


def test_overlap_is_reported_per_layer(caplog):
    compositor = Compositor("MAP", 512, 512)
    with caplog.at_level(logging.WARNING, logger="playview"):
        assert not compositor.note_grid(_tile(0, 1, 1))
        assert not compositor.note_grid(_tile(1, 1, 1, layer=1))
        assert compositor.note_grid(_tile(2, 1, 1))
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "overlapping image at 1, 1" in warnings[0].getMessage()


def test_decode_turns_decompression_bombs_into_decode_errors():
    with pytest.raises(DecodeError):
        decode_tile(oversized_jpeg(60000, 60000))


def test_fully_clipped_tile_creates_no_canvas():
    compositor = Compositor("Z", 0, 256)
    assert not compositor.place(_tile(0, 0, 0), _solid((255, 0, 0)))
    assert len(compositor) == 0
    assert list(compositor.canvases()) == []
