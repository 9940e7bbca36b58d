"""Pytest configuration for skytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def reset_renderer_state():
    """Clear the scene and restore default settings around each test."""
    # Import here so Taichi is initialized before fields are declared
    from skytracer.core.config import RenderSettings, apply_settings
    from skytracer.scene.intersection import clear_scene

    def _reset():
        clear_scene()
        apply_settings(RenderSettings())

    _reset()
    yield
    _reset()
