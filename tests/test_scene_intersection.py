"""Tests for the scene object table and per-object queries.

Note: Imports are done inside test methods; the conftest.py fixture
initializes Taichi and clears the scene around every test.
"""

import numpy as np
import pytest
import taichi as ti


def _sphere(center, radius, **material):
    from skytracer.materials.metallic import Material
    from skytracer.scene.objects import SphereObject

    return SphereObject(center=center, radius=radius, material=Material(**material))


def _triangle(v0, v1, v2, **material):
    from skytracer.materials.metallic import Material
    from skytracer.scene.objects import TriangleObject

    return TriangleObject(v0=v0, v1=v1, v2=v2, material=Material(**material))


class TestSceneObjects:
    def test_sphere_radius_must_be_positive(self):
        with pytest.raises(ValueError, match="radius"):
            _sphere((0.0, 0.0, 0.0), 0.0)

    def test_snapshot_is_immutable(self):
        from dataclasses import FrozenInstanceError

        from skytracer.camera.pinhole import Camera
        from skytracer.scene.objects import SceneSnapshot

        camera = Camera.look_at((5.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        snapshot = SceneSnapshot(camera=camera, objects=(_sphere((0.0, 0.0, 0.0), 1.0),))
        with pytest.raises(FrozenInstanceError):
            snapshot.objects = ()


class TestLoadObjects:
    def test_load_and_clear(self):
        from skytracer.scene.intersection import clear_scene, get_object_count, load_objects

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0), _triangle((0, 0, 0), (1, 0, 0), (0, 1, 0))])
        assert get_object_count() == 2
        clear_scene()
        assert get_object_count() == 0

    def test_load_replaces_previous_scene(self):
        from skytracer.scene.intersection import get_object_count, load_objects

        load_objects([_sphere((0.0, 0.0, float(i)), 0.5) for i in range(5)])
        load_objects([_sphere((0.0, 0.0, 0.0), 1.0)])
        assert get_object_count() == 1

    def test_capacity_exceeded(self):
        from skytracer.scene.intersection import MAX_OBJECTS, load_objects

        objects = [_sphere((0.0, 0.0, 0.0), 1.0)] * (MAX_OBJECTS + 1)
        with pytest.raises(RuntimeError, match="Maximum number of objects"):
            load_objects(objects)

    def test_unsupported_object(self):
        from skytracer.scene.intersection import load_objects

        with pytest.raises(TypeError, match="Unsupported"):
            load_objects([(0.0, 0.0, 0.0)])

    def test_rejected_upload_keeps_previous_scene(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import MAX_OBJECTS, get_object_count, load_objects

        load_objects([_sphere((0.0, 0.0, -10.0), 1.0), _sphere((0.0, 0.0, -20.0), 1.0)])

        with pytest.raises(TypeError, match="Unsupported"):
            load_objects([_sphere((0.0, 0.0, -3.0), 1.0), "not an object"])
        with pytest.raises(RuntimeError, match="Maximum number of objects"):
            load_objects([_sphere((0.0, 0.0, -3.0), 1.0)] * (MAX_OBJECTS + 1))

        assert get_object_count() == 2
        idx, t = nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert idx == 0
        assert t == pytest.approx(9.0, abs=1e-5)

    def test_material_lookup(self):
        from skytracer.core.color import Color
        from skytracer.scene.intersection import load_objects, object_get_mat

        load_objects(
            [
                _sphere((0.0, 0.0, 0.0), 1.0),
                _triangle(
                    (0, 0, 0),
                    (1, 0, 0),
                    (0, 1, 0),
                    albedo=Color(0.5, 0.25, 0.125),
                    metallicity=0.75,
                    emission_strength=2.0,
                    emission_color=Color(1.0, 1.0, 0.0),
                ),
            ]
        )
        albedo = ti.Vector.field(4, dtype=ti.f32, shape=())
        scalars = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            m = object_get_mat(1)
            albedo[None] = m.albedo
            scalars[0] = m.metallicity
            scalars[1] = m.emission_strength

        test_kernel()
        assert albedo[None].to_numpy() == pytest.approx([0.5, 0.25, 0.125, 1.0])
        assert scalars[0] == pytest.approx(0.75)
        assert scalars[1] == pytest.approx(2.0)


class TestPerObjectQueries:
    def test_get_t_and_intersects_by_kind(self):
        from skytracer.core.ray import make_ray, vec3
        from skytracer.scene.intersection import load_objects, object_get_t, object_intersects

        load_objects(
            [
                _sphere((0.0, 0.0, 0.0), 1.0),
                _triangle((-1.0, -1.0, -3.0), (1.0, -1.0, -3.0), (0.0, 1.0, -3.0)),
            ]
        )
        t = ti.field(dtype=ti.f32, shape=4)
        hit = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            toward = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0))
            away = make_ray(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, 1.0))
            t[0] = object_get_t(0, toward)
            t[1] = object_get_t(1, toward)
            t[2] = object_get_t(0, away)
            t[3] = object_get_t(1, away)
            hit[0] = object_intersects(0, toward)
            hit[1] = object_intersects(1, toward)
            hit[2] = object_intersects(0, away)
            hit[3] = object_intersects(1, away)

        test_kernel()
        assert t[0] == pytest.approx(4.0, abs=1e-5)
        assert t[1] == pytest.approx(8.0, abs=1e-5)
        assert t[2] == -1.0 and t[3] == -1.0
        assert [hit[i] for i in range(4)] == [1, 1, 0, 0]

    def test_get_norm(self):
        from skytracer.core.ray import vec3
        from skytracer.scene.intersection import load_objects, object_get_norm

        load_objects(
            [
                _sphere((0.0, 0.0, 2.0), 2.0),
                _triangle((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)),
            ]
        )
        normals = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            normals[0] = object_get_norm(0, vec3(2.0, 0.0, 2.0))
            # Triangle normal is the same everywhere on the face
            normals[1] = object_get_norm(1, vec3(0.0, 0.2, 0.2))

        test_kernel()
        assert normals[0].to_numpy() == pytest.approx([1.0, 0.0, 0.0], abs=1e-6)
        assert normals[1].to_numpy() == pytest.approx([1.0, 0.0, 0.0], abs=1e-6)

    def test_next_ray_mirror_bounce(self):
        from skytracer.core.ray import make_ray, vec3
        from skytracer.scene.intersection import load_objects, object_get_next_ray

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0, metallicity=1.0)])
        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = object_get_next_ray(0, make_ray(vec3(5.0, 0.0, 0.0), vec3(-1.0, 0.0, 0.0)))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        # Backed off by the 1e-3 epsilon along the incoming ray
        assert origin[None].to_numpy() == pytest.approx([1.001, 0.0, 0.0], abs=1e-5)
        assert direction[None].to_numpy() == pytest.approx([1.0, 0.0, 0.0], abs=1e-5)

    def test_next_ray_from_inside_stays_inside(self):
        from skytracer.core.ray import make_ray, vec3
        from skytracer.scene.intersection import load_objects, object_get_next_ray

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0, metallicity=1.0)])
        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = object_get_next_ray(0, make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0)))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        assert origin[None].to_numpy() == pytest.approx([0.999, 0.0, 0.0], abs=1e-5)
        assert direction[None].to_numpy() == pytest.approx([-1.0, 0.0, 0.0], abs=1e-5)

    def test_diffuse_bounce_leaves_surface(self):
        from skytracer.core.ray import make_ray, vec3
        from skytracer.scene.intersection import load_objects, object_get_next_ray

        load_objects([_triangle((-5.0, -5.0, 0.0), (5.0, -5.0, 0.0), (0.0, 5.0, 0.0))])
        n = 1024
        z = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                # Arrives from above; the face normal (+z) already faces the ray
                ray = object_get_next_ray(0, make_ray(vec3(0.0, 0.0, 2.0), vec3(0.0, 0.0, -1.0)))
                z[i] = ray.direction.z

        test_kernel()
        assert z.to_numpy().min() >= 0.0


class TestSceneQueries:
    def test_nearest_hit_ignores_upload_order(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import load_objects

        far = _sphere((-10.0, 0.0, 0.0), 1.0)
        near = _sphere((0.0, 0.0, 0.0), 1.0)

        load_objects([far, near])
        idx, t = nearest_hit((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0))
        assert idx == 1
        assert t == pytest.approx(4.0, abs=1e-5)

        load_objects([near, far])
        idx, t = nearest_hit((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0))
        assert idx == 0
        assert t == pytest.approx(4.0, abs=1e-5)

    def test_exact_tie_goes_to_first_object(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import load_objects

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0), _sphere((0.0, 0.0, 0.0), 1.0)])
        idx, _ = nearest_hit((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0))
        assert idx == 0

    def test_no_hit(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import load_objects

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0)])
        assert nearest_hit((5.0, 0.0, 0.0), (1.0, 0.0, 0.0)) == (-1, -1.0)

    def test_empty_scene(self):
        from skytracer.core.integrator import nearest_hit

        assert nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0)) == (-1, -1.0)

    def test_sphere_in_front_of_triangle(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import load_objects

        load_objects(
            [
                _triangle((5.0, -5.0, -1.0), (5.0, 5.0, -1.0), (-5.0, 5.0, -1.0)),
                _triangle((5.0, -5.0, -1.0), (-5.0, 5.0, -1.0), (-5.0, -5.0, -1.0)),
                _sphere((0.0, 0.0, 0.0), 1.0),
            ]
        )
        idx, t = nearest_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert idx == 2
        assert t == pytest.approx(4.0, abs=1e-5)

        idx, t = nearest_hit((3.0, 3.0, 5.0), (0.0, 0.0, -1.0))
        assert idx in (0, 1)
        assert t == pytest.approx(6.0, abs=1e-5)

    def test_shadow_query(self):
        from skytracer.core.ray import make_ray, vec3
        from skytracer.scene.intersection import intersect_scene_any, load_objects

        load_objects([_sphere((0.0, 0.0, 3.0), 1.0)])
        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = intersect_scene_any(make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0)))
            result[1] = intersect_scene_any(make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0)))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0

    def test_direction_is_normalized_before_query(self):
        from skytracer.core.integrator import nearest_hit
        from skytracer.scene.intersection import load_objects

        load_objects([_sphere((0.0, 0.0, 0.0), 1.0)])
        _, t = nearest_hit((5.0, 0.0, 0.0), (-10.0, 0.0, 0.0))
        assert t == pytest.approx(4.0, abs=1e-5)
        assert np.isfinite(t)
