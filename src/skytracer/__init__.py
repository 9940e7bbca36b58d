"""Progressive path tracer built on Taichi.

This package renders a scene of spheres and triangles into an RGBA8 pixel
buffer. Every call to ``Tracer.draw`` traces one jittered path per pixel in
parallel and folds it into a running per-pixel mean, so the image converges
as frames accumulate.

Subpackages:
    core: Ray/vector/color utilities, settings, integrator and accumulation
    camera: Image-plane camera and primary ray generation
    geometry: Sphere and triangle intersection routines
    materials: Albedo/metallicity/emission material model
    scene: Scene description types, object table upload and demo scenes
    preview: Presentation buffer helpers
"""

__version__ = "0.1.0"
