"""Whitted shading at a single ray-surface hit.

A hit is shaded in two stages:

Local stage (skipped for mirrors): for every light, add the ambient term
ra*L*S, then estimate how much of the light is visible by casting shadow
rays toward random points inside the light's sphere, and add the visible
fraction of the diffuse term rd*L*S*max(0, n.s) and the specular term
rs*L*max(0, r.b)^shininess. The colour is clamped after each light.

Global stage (only below the maximum depth): set up the mirror reflection
ray, weighted by rg*S*alpha, and for partially transparent materials the
refraction ray from Snell's law, weighted by (1 - alpha)*S. Total internal
reflection simply produces no refraction ray.

shade_node() performs both stages for one ray and returns a ShadeNode
describing the local colour and the child rays to trace. The bounded ray
tree itself is evaluated by the integrator.
"""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, clamp_color, normalize, reflect
from src.whitted.core.sampling import sample_sphere_offset
from src.whitted.materials.phong import SurfaceMaterial, load_material
from src.whitted.materials.texture import sample_texture
from src.whitted.scene.traversal import (
    SceneHit,
    find_first_hit,
    light_colors,
    light_positions,
    light_radii,
    num_lights,
)

vec3 = tm.vec3

# Shadow rays per light with and without antialiasing
SHADOW_SAMPLES_ANTIALIASED = 10
SHADOW_SAMPLES_DEFAULT = 1

# Offset along the refracted direction so the refracted ray clears its surface
RAY_EPSILON = 1e-4


@ti.dataclass
class ShadeNode:
    """Result of shading one ray, plus the child rays it spawns.

    Attributes:
        color: Accumulated colour after the local stage, clamped to [0, 1].
        object_id: The object that was hit, or -1 on a miss.
        point: World-space hit point; origin of both child rays.
        reflect_dir: Unit mirror reflection direction.
        refract_dir: Unit refraction direction.
        spawn_reflect: 1 if the reflection ray should be traced.
        spawn_refract: 1 if the refraction ray should be traced.
        reflect_weight: Per-channel weight of the reflected colour.
        refract_weight: Per-channel weight of the refracted colour.
        rng_state: Random stream state after the shadow samples drawn here.
    """

    color: vec3
    object_id: ti.i32
    point: vec3
    reflect_dir: vec3
    refract_dir: vec3
    spawn_reflect: ti.i32
    spawn_refract: ti.i32
    reflect_weight: vec3
    refract_weight: vec3
    rng_state: ti.u32


@ti.func
def surface_color(mat: SurfaceMaterial, u: ti.f32, v: ti.f32) -> vec3:
    """Base colour of a surface: its texture at (u, v), or the material colour."""
    result = mat.color
    if mat.texture_id >= 0:
        result = sample_texture(mat.texture_id, u, v)
    return result


@ti.func
def light_unoccluded(point: vec3, target: vec3, source: ti.i32) -> ti.i32:
    """Check whether the segment from a surface point to a light sample is clear.

    The shadow ray keeps the full point-to-sample length, so only occluders
    with t strictly inside (0, 1) lie between the two points. The shading
    object itself is excluded from the query.
    """
    shadow_ray = Ray(origin=point, direction=target - point)
    blocker = find_first_hit(shadow_ray, source)
    visible = 1
    if blocker.hit == 1 and blocker.t > 0.0 and blocker.t < 1.0:
        visible = 0
    return visible


@ti.func
def shade_local(
    base: vec3,
    hit: SceneHit,
    mat: SurfaceMaterial,
    surface: vec3,
    to_viewer: vec3,
    num_samples: ti.i32,
    rng_state: ti.u32,
):
    """Accumulate ambient, diffuse and specular light with soft shadows.

    Args:
        base: Colour accumulated before this stage.
        hit: The surface hit being shaded.
        mat: The surface material.
        surface: The base surface colour (texture or material).
        to_viewer: Unit vector from the hit toward the viewer.
        num_samples: Shadow rays per light.
        rng_state: Random stream state.

    Returns:
        A tuple (rng_state, color, saturated) where saturated is 1 when every
        channel reached 1 and the remaining lights were skipped.
    """
    color = base
    ra = mat.albedos[0]
    rd = mat.albedos[1]
    rs = mat.albedos[2]
    n = hit.normal
    saturated = 0
    inv_samples = 1.0 / ti.cast(num_samples, ti.f32)

    for l in range(num_lights[None]):
        if saturated == 0:
            light_color = light_colors[l]
            center = light_positions[l]
            radius = light_radii[l]

            color += ra * light_color * surface

            visible = 0.0
            for _ in range(num_samples):
                offset = vec3(0.0, 0.0, 0.0)
                rng_state, offset = sample_sphere_offset(rng_state, radius)
                if light_unoccluded(hit.point, center + offset, hit.object_id) == 1:
                    visible += 1.0

            if visible > 0.0:
                s = normalize(center - hit.point)
                n_dot_s = tm.dot(n, s)
                r = 2.0 * n_dot_s * n - s
                if mat.double_sided == 1:
                    n_dot_s = ti.abs(n_dot_s)
                diffuse = rd * light_color * surface * ti.max(0.0, n_dot_s)
                specular = rs * light_color * ti.pow(ti.max(0.0, tm.dot(r, to_viewer)), mat.shininess)
                color += visible * inv_samples * (diffuse + specular)

            color = clamp_color(color)
            if color.x >= 1.0 and color.y >= 1.0 and color.z >= 1.0:
                saturated = 1

    return rng_state, color, saturated


@ti.func
def refract_direction(direction: vec3, normal: vec3, exiting: ti.i32, r_index: ti.f32):
    """Refracted direction from the vector form of Snell's law.

    The hit normal faces the incoming ray; when the ray was exiting the
    solid it is negated to recover the outward normal N. With cos = N.d the
    sign tells the interfaces apart:

        entering (cos < 0): t = (d - N cos)/eta - N sqrt(1 - (1 - cos^2)/eta^2)
        exiting  (cos >= 0): t = eta (d - N cos) + N sqrt(1 - eta^2 (1 - cos^2))

    A negative radicand is total internal reflection: no refracted ray.

    Args:
        direction: Unit incoming ray direction d.
        normal: Unit hit normal facing the incoming ray.
        exiting: The hit's exiting flag.
        r_index: Refractive index eta of the object.

    Returns:
        A tuple (valid, refracted_direction); valid is 0 under total
        internal reflection.
    """
    outward = normal
    if exiting == 1:
        outward = -normal
    cos_theta = tm.dot(outward, direction)
    sin2 = 1.0 - cos_theta * cos_theta

    valid = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if cos_theta < 0.0:
        k = 1.0 - sin2 / (r_index * r_index)
        if k >= 0.0:
            refracted = (direction - outward * cos_theta) / r_index - outward * ti.sqrt(k)
            valid = 1
    else:
        k = 1.0 - r_index * r_index * sin2
        if k >= 0.0:
            refracted = r_index * (direction - outward * cos_theta) + outward * ti.sqrt(k)
            valid = 1
    return valid, normalize(refracted)


@ti.func
def shade_node(
    ray: Ray,
    source: ti.i32,
    depth: ti.i32,
    max_depth: ti.i32,
    base: vec3,
    num_samples: ti.i32,
    rng_state: ti.u32,
) -> ShadeNode:
    """Shade one ray of the Whitted tree.

    Args:
        ray: The world-space ray.
        source: Object to exclude from the hit query, or -1.
        depth: Recursion depth of this ray.
        max_depth: Maximum recursion depth; child rays are only spawned
            while depth < max_depth.
        base: Accumulator the local colour is added to.
        num_samples: Shadow rays per light.
        rng_state: Random stream state.

    Returns:
        A ShadeNode. On a miss the colour is the unchanged base and no
        child rays are spawned.
    """
    color = base
    object_id = -1
    point = vec3(0.0, 0.0, 0.0)
    reflect_dir = vec3(0.0, 0.0, 0.0)
    refract_dir = vec3(0.0, 0.0, 0.0)
    spawn_reflect = 0
    spawn_refract = 0
    reflect_weight = vec3(0.0, 0.0, 0.0)
    refract_weight = vec3(0.0, 0.0, 0.0)

    hit = find_first_hit(ray, source)
    if hit.hit == 1:
        mat = load_material(hit.material_id)
        surface = surface_color(mat, hit.u, hit.v)
        d = normalize(ray.direction)
        object_id = hit.object_id
        point = hit.point

        saturated = 0
        if mat.is_mirror == 0:
            rng_state, color, saturated = shade_local(
                color, hit, mat, surface, -d, num_samples, rng_state
            )

        if saturated == 0 and depth < max_depth:
            reflect_weight = mat.albedos[3] * mat.alpha * surface
            if reflect_weight.max() > 0.0:
                reflect_dir = reflect(d, hit.normal)
                spawn_reflect = 1

            if mat.alpha < 1.0:
                valid, t_dir = refract_direction(d, hit.normal, hit.exiting, mat.r_index)
                refract_weight = (1.0 - mat.alpha) * surface
                if valid == 1 and refract_weight.max() > 0.0:
                    refract_dir = t_dir
                    spawn_refract = 1

    return ShadeNode(
        color=clamp_color(color),
        object_id=object_id,
        point=point,
        reflect_dir=reflect_dir,
        refract_dir=refract_dir,
        spawn_reflect=spawn_reflect,
        spawn_refract=spawn_refract,
        reflect_weight=reflect_weight,
        refract_weight=refract_weight,
        rng_state=rng_state,
    )
