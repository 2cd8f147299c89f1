"""Local illumination: ambient, diffuse and specular terms with hard shadows.

For a surface point P with unit normal N, viewed along V (pointing back toward
the viewer), the returned scalar intensity is the sum over lights of:

    ambient:     I
    diffuse:     I * (N.L) / (|N| |L|)               when N.L > 0
    specular:    I * ((R.V) / (|R| |V|))^s           when R.V > 0 and s >= 0
                 with R = 2N(N.L) - L

where L is the vector toward the light. Point and directional lights
contribute nothing when a shadow ray from P toward the light is blocked. For
a point light L = position - P and the shadow search window ends at t = 1
(the light itself); for a directional light it is unbounded.

The shaded color is the material color scaled by this intensity. Intensity is
not clamped here; the renderer clamps the final color.
"""

import taichi as ti
import taichi.math as tm

from tileray.core.ray import T_INFINITY, T_MIN, length, reflect
from tileray.scene.lights import LightType

# Type alias for 3D vectors
vec3 = tm.vec3

# Light kinds as plain ints for comparison inside Taichi scope
AMBIENT = int(LightType.AMBIENT)
POINT = int(LightType.POINT)


@ti.func
def compute_lighting(
    scene: ti.template(),
    point: vec3,
    normal: vec3,
    view: vec3,
    specular: ti.f32,
    last_occluder: ti.i32,
):
    """Compute the light intensity arriving at a surface point.

    Args:
        scene: The Scene holding the lights and occluders.
        point: The shaded point.
        normal: Unit surface normal at the point.
        view: Vector from the point back toward the viewer.
        specular: Phong exponent of the material; negative disables the
            specular term.
        last_occluder: Shadow cache carried between shadow queries of the
            same worker (-1 when empty).

    Returns:
        Tuple (intensity, last_occluder) with the updated shadow cache.
    """
    intensity = 0.0
    occluder = last_occluder

    for i in range(scene.num_lights):
        kind = scene.light_kinds[i]
        light_intensity = scene.light_intensities[i]

        if kind == AMBIENT:
            intensity += light_intensity
        else:
            light_dir = scene.light_vectors[i]
            t_max = T_INFINITY
            if kind == POINT:
                light_dir = scene.light_vectors[i] - point
                t_max = 1.0

            blocked, occluder = scene.occluded(point, light_dir, T_MIN, t_max, occluder)

            if blocked == 0:
                # Diffuse
                n_dot_l = tm.dot(normal, light_dir)
                if n_dot_l > 0.0:
                    intensity += light_intensity * n_dot_l / (length(normal) * length(light_dir))

                # Specular
                if specular >= 0.0:
                    r = reflect(light_dir, normal)
                    r_dot_v = tm.dot(r, view)
                    if r_dot_v > 0.0:
                        intensity += light_intensity * ti.pow(r_dot_v / (length(r) * length(view)), specular)

    return intensity, occluder
