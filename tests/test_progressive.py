"""Tests for the progressive Tracer.

This module tests:
- Construction and settings handling
- The draw contract (buffer length, full overwrite, row-major layout)
- Running-mean accumulation, convergence and reset

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import numpy as np
import pytest


def _empty_provider(t):
    from skytracer.camera.pinhole import Camera

    return Camera.look_at((5.0, 0.0, 0.0), (0.0, 0.0, 0.0)), []


def _lamp_above_center(t):
    """An emissive sphere that fills part of the upper half of the image."""
    from skytracer.camera.pinhole import Camera
    from skytracer.core.color import BLACK, WHITE
    from skytracer.materials.metallic import Material
    from skytracer.scene.objects import SphereObject

    lamp = Material(albedo=BLACK, emission_strength=1.0, emission_color=WHITE)
    return (
        Camera.look_at((5.0, 0.0, 0.0), (0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0)),
        [SphereObject(center=(0.0, 0.0, 2.0), radius=1.0, material=lamp)],
    )


class TestTracerInit:
    def test_init(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(16, _empty_provider)
        assert tracer.side == 16
        assert tracer.frames == 0
        assert tracer.snapshot is None
        assert tracer.settings.side == 16
        assert repr(tracer) == "Tracer(side=16, frames=0)"

    def test_side_argument_overrides_settings(self):
        from skytracer.core.config import RenderSettings
        from skytracer.core.progressive import Tracer

        tracer = Tracer(32, _empty_provider, RenderSettings(side=8, bounce_limit=2))
        assert tracer.settings.side == 32
        assert tracer.settings.bounce_limit == 2

    @pytest.mark.parametrize("side", [0, 4096])
    def test_rejects_bad_side(self, side):
        from skytracer.core.progressive import Tracer

        with pytest.raises(ValueError, match="Image side"):
            Tracer(side, _empty_provider)

    def test_accumulation_starts_empty(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(8, _empty_provider)
        acc = tracer.get_accumulated_numpy()
        assert acc.shape == (8, 8, 4)
        assert np.all(acc == 0.0)


class TestDrawContract:
    def test_wrong_buffer_length(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(8, _empty_provider)
        with pytest.raises(ValueError, match="expected 256"):
            tracer.draw(0.0, bytearray(8 * 8 * 3))
        assert tracer.frames == 0

    def test_read_only_buffer(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(8, _empty_provider)
        with pytest.raises(TypeError, match="writable"):
            tracer.draw(0.0, bytes(8 * 8 * 4))

    def test_buffer_fully_overwritten_and_not_resized(self):
        from skytracer.core.color import SKYBLUE
        from skytracer.core.progressive import Tracer

        tracer = Tracer(8, _empty_provider)
        buffer = bytearray(b"\xab" * (8 * 8 * 4))
        tracer.draw(0.0, buffer)

        assert len(buffer) == 8 * 8 * 4
        pixels = np.frombuffer(buffer, dtype=np.uint8).reshape(64, 4).astype(int)
        expected = np.array(SKYBLUE.to_u8())
        assert np.all(np.abs(pixels - expected) <= 1)

    def test_accepts_numpy_buffer(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(4, _empty_provider)
        buffer = np.zeros(4 * 4 * 4, dtype=np.uint8)
        tracer.draw(0.0, buffer)
        assert np.all(buffer[3::4] == 255)

    def test_provider_called_with_time_and_snapshot_kept(self):
        from skytracer.core.progressive import Tracer

        times = []

        def provider(t):
            times.append(t)
            return _empty_provider(t)

        tracer = Tracer(4, provider)
        tracer.draw(1.5, bytearray(64))
        tracer.draw(2.5, bytearray(64))
        assert times == [1.5, 2.5]
        assert tracer.frames == 2
        assert tracer.snapshot is not None
        assert tracer.snapshot.objects == ()

    def test_row_major_layout(self):
        from skytracer.core.config import RenderSettings
        from skytracer.core.progressive import Tracer
        from skytracer.preview.presenter import FrameBuffer

        side = 32
        tracer = Tracer(side, _lamp_above_center, RenderSettings(bounce_limit=0))
        frame = FrameBuffer(side)
        tracer.draw(0.0, frame.buffer)

        # The lamp sits above the view axis: upper rows, centre column
        assert frame.pixel(9, 16)[0] == 255
        # The mirrored pixel below the axis sees only sky
        assert frame.pixel(side - 9, 16)[0] < 110

    def test_failed_scene_upload_keeps_previous_frame_state(self):
        from skytracer.core.config import RenderSettings
        from skytracer.core.progressive import Tracer

        broken = {"value": False}

        def provider(t):
            camera, objects = _lamp_above_center(t)
            if broken["value"]:
                from skytracer.camera.pinhole import Camera

                camera = Camera.look_at((-5.0, 0.0, 0.0), (0.0, 0.0, 0.0))
                objects = objects + ["not an object"]
            return camera, objects

        tracer = Tracer(8, provider, RenderSettings(bounce_limit=0))
        buffer = bytearray(8 * 8 * 4)
        tracer.draw(0.0, buffer)
        before = tracer.get_pixel_color(0.0, -0.4)
        snapshot = tracer.snapshot

        broken["value"] = True
        with pytest.raises(TypeError, match="Unsupported"):
            tracer.draw(1.0, buffer)

        assert tracer.frames == 1
        assert tracer.snapshot is snapshot
        # Camera and objects are still those of the last good frame
        assert tracer.get_pixel_color(0.0, -0.4)[:3] == pytest.approx(before[:3], abs=1e-5)

    def test_get_pixel_color_requires_a_frame(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(4, _empty_provider)
        with pytest.raises(RuntimeError, match="draw"):
            tracer.get_pixel_color(0.0, 0.0)


class TestAccumulation:
    def test_constant_samples_keep_constant_mean(self):
        from skytracer.core.color import SKYBLUE
        from skytracer.core.progressive import Tracer

        tracer = Tracer(4, _empty_provider)
        buffer = bytearray(64)
        for _ in range(5):
            tracer.draw(0.0, buffer)
        acc = tracer.get_accumulated_numpy()
        assert tracer.frames == 5
        assert np.allclose(acc, np.array(SKYBLUE.as_tuple(), dtype=np.float32), atol=1e-5)

    def test_running_mean_matches_frame_average(self):
        """The mean after n frames equals the average of the n samples."""
        from skytracer.core.progressive import Tracer
        from skytracer.scene.demo import construct_scene

        side = 8
        tracer = Tracer(side, construct_scene)
        buffer = bytearray(side * side * 4)

        means = []
        for _ in range(6):
            tracer.draw(0.0, buffer)
            means.append(tracer.get_accumulated_numpy())

        # Recover each frame's sample from successive means
        samples = [means[0]] + [
            means[k] * (k + 1) - means[k - 1] * k for k in range(1, len(means))
        ]
        assert np.allclose(np.mean(samples, axis=0), means[-1], atol=1e-4)

    def test_converges(self):
        from skytracer.core.progressive import Tracer
        from skytracer.preview.presenter import compute_rmse
        from skytracer.scene.demo import construct_scene

        side = 16
        tracer = Tracer(side, construct_scene)
        buffer = bytearray(side * side * 4)

        deltas = []
        previous = tracer.get_accumulated_numpy()
        for _ in range(48):
            tracer.draw(0.0, buffer)
            current = tracer.get_accumulated_numpy()
            deltas.append(compute_rmse(previous, current))
            previous = current

        early = float(np.mean(deltas[1:5]))
        late = float(np.mean(deltas[-4:]))
        assert late < early * 0.5

    def test_reset(self):
        from skytracer.core.progressive import Tracer

        tracer = Tracer(4, _empty_provider)
        tracer.render([0.0, 0.0, 0.0], bytearray(64))
        assert tracer.frames == 3

        tracer.reset()
        assert tracer.frames == 0
        assert np.all(tracer.get_accumulated_numpy() == 0.0)

    def test_get_pixel_color_uses_last_scene(self):
        from skytracer.core.config import RenderSettings
        from skytracer.core.progressive import Tracer

        tracer = Tracer(8, _lamp_above_center, RenderSettings(bounce_limit=0))
        tracer.draw(0.0, bytearray(8 * 8 * 4))

        # Straight at the lamp centre: up is negative v
        color = tracer.get_pixel_color(0.0, -0.4)
        assert color[:3] == pytest.approx((1.0, 1.0, 1.0), abs=1e-5)
