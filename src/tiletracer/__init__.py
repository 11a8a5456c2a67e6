"""Multi-threaded Monte Carlo path tracer for sphere scenes.

This package renders a static scene of spheres into a framebuffer using
stochastic path tracing, splitting the image into row tiles that are
rendered by a pool of worker threads:
- Recursive path integrator with a bounded bounce depth
- Diffuse, metal and dielectric materials
- Tile scheduler with exactly-once job execution and a completion barrier
- PPM and PNG output

Subpackages:
    core: Ray and vector utilities, integrator, scheduler and frame assembly
    geometry: Sphere primitive and intersection algorithms
    materials: Surface scattering models
    scene: Scene container and procedural scenes
    camera: Camera model with ray generation
    preview: Output writers and preview utilities
"""

__version__ = "0.1.0"
