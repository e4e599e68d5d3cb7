"""
Tests for the Enhancer session.

Tests cover:
- Toggling filters and previews recomputed from the original crop
- Order independence of toggles
- Identity pass-through when no filter is active
- Failure keeps the previous state
- In-flight guard
"""

import threading

import pytest
from PIL import Image

from MK_Libs.EnhanceLib.enhancer import Enhancer
from MK_Libs.EnhanceLib.filter_catalog import FilterCatalog, build_default_catalog
from MK_Libs.errors import CaptureInProgressError, PipelineStateError, ProcessingError
from MK_Libs.ImageBufferLib.buffer_ops import decode_image, encode_jpeg, to_buffer
from MK_Libs.ImageBufferLib.image_models import CroppedImage, FinalImage


@pytest.fixture
def cropped(gradient_image):
    square = gradient_image.crop((0, 0, 48, 48))
    return to_buffer(square, 0.95, CroppedImage)


@pytest.fixture
def enhancer(cropped):
    return Enhancer(cropped, catalog=build_default_catalog())


class TestToggle:
    """Tests for toggling filters."""

    def test_initial_state(self, enhancer, cropped):
        assert enhancer.active == frozenset()
        assert enhancer.preview is cropped

    def test_toggle_on_and_off(self, enhancer, cropped):
        enhancer.toggle("contrast")
        assert enhancer.is_active("contrast")
        assert enhancer.preview is not cropped

        enhancer.toggle("contrast")
        assert not enhancer.is_active("contrast")
        assert enhancer.preview is cropped

    def test_preview_matches_direct_application(self, enhancer, cropped):
        preview = enhancer.toggle("sharpen")
        catalog = build_default_catalog()
        expected = encode_jpeg(catalog.apply_filters(decode_image(cropped), ["sharpen"]), 0.95)

        assert preview.data == expected

    def test_toggle_order_independent(self, cropped):
        first = Enhancer(cropped, catalog=build_default_catalog())
        first.toggle("contrast")
        first.toggle("sharpen")

        second = Enhancer(cropped, catalog=build_default_catalog())
        second.toggle("sharpen")
        second.toggle("contrast")

        assert first.active == second.active
        assert first.preview.data == second.preview.data

    def test_toggle_off_recomputes_from_source(self, cropped):
        enhancer = Enhancer(cropped, catalog=build_default_catalog())
        enhancer.toggle("background")
        enhancer.toggle("auto")
        enhancer.toggle("background")

        fresh = Enhancer(cropped, catalog=build_default_catalog())
        fresh.toggle("auto")

        assert enhancer.preview.data == fresh.preview.data

    def test_unknown_filter_raises_state_error(self, enhancer):
        with pytest.raises(PipelineStateError):
            enhancer.toggle("sepia")

        assert enhancer.active == frozenset()

    def test_set_active(self, enhancer):
        enhancer.set_active(["auto", "background"])

        assert enhancer.active == frozenset({"auto", "background"})

    def test_reset(self, enhancer, cropped):
        enhancer.toggle("contrast")
        enhancer.reset()

        assert enhancer.active == frozenset()
        assert enhancer.preview is cropped


class TestFailure:
    """Filter failures leave the session as it was."""

    def test_failure_keeps_state(self, cropped):
        catalog = FilterCatalog()
        catalog.register("ok", "Fine", lambda image: image.copy())

        def broken(image):
            raise ValueError("boom")

        catalog.register("broken", "Broken", broken)
        enhancer = Enhancer(cropped, catalog=catalog)
        good_preview = enhancer.toggle("ok")

        with pytest.raises(ProcessingError):
            enhancer.toggle("broken")

        assert enhancer.active == frozenset({"ok"})
        assert enhancer.preview is good_preview

    def test_released_session_raises(self, enhancer):
        enhancer.release()

        with pytest.raises(ProcessingError):
            enhancer.toggle("contrast")


class TestComplete:
    """Tests for producing the final image."""

    def test_identity_pass_through(self, enhancer, cropped):
        final = enhancer.complete()

        assert isinstance(final, FinalImage)
        assert final.data == cropped.data
        assert final.size == cropped.size

    def test_complete_matches_preview(self, enhancer):
        preview = enhancer.toggle("auto")
        final = enhancer.complete()

        assert final.data == preview.data
        assert final.size == (48, 48)


class TestInFlightGuard:
    """A second recompute while one runs is rejected."""

    def test_concurrent_toggle_rejected(self, cropped):
        started = threading.Event()
        release = threading.Event()

        def slow(image):
            started.set()
            release.wait(5)
            return image.copy()

        catalog = FilterCatalog()
        catalog.register("slow", "Slow", slow)
        catalog.register("fast", "Fast", lambda image: image.copy())
        enhancer = Enhancer(cropped, catalog=catalog)

        worker = threading.Thread(target=enhancer.toggle, args=("slow",))
        worker.start()
        try:
            assert started.wait(5)
            assert enhancer.busy
            with pytest.raises(CaptureInProgressError):
                enhancer.toggle("fast")
            with pytest.raises(CaptureInProgressError):
                enhancer.complete()
        finally:
            release.set()
            worker.join(5)

        assert enhancer.active == frozenset({"slow"})
        assert not enhancer.busy


def test_preview_image_is_decoded(enhancer):
    enhancer.toggle("background")

    assert isinstance(enhancer.preview_image, Image.Image)
    assert enhancer.preview_image.size == (48, 48)
