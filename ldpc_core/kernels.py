"""JIT-compiled check-node kernels.

Every kernel works on per-edge arrays in check-major (CSR) order: the edges of
check ``ci`` occupy ``check_bounds[ci]:check_bounds[ci + 1]``.
"""

import numba
import numpy as np

# Saturation of tanh(x / 2) before atanh, keeps the inverse finite
TANH_CLIP = 0.999
# Smallest argument passed to phi(x) = -ln(tanh(x / 2))
PHI_MIN_ARG = 1e-9


@numba.njit(cache=True)
def _phi(x: float) -> float:
    x = max(x, PHI_MIN_ARG)
    return -np.log(np.tanh(x / 2.0))


@numba.njit(cache=True)
def min_sum_check_update(
    v2c: np.ndarray,
    c2v: np.ndarray,
    check_bounds: np.ndarray,
    alpha: float,
    offset: float,
    limit: float,
) -> None:
    """Scaled/offset min-sum: ``alpha * sign * max(min_excl - offset, 0)``."""
    num_checks = len(check_bounds) - 1
    for ci in range(num_checks):
        start = check_bounds[ci]
        end = check_bounds[ci + 1]
        if end - start == 1:
            c2v[start] = limit
            continue

        total_sign = 1.0
        min1 = np.inf
        min2 = np.inf
        argmin = start
        for j in range(start, end):
            msg = v2c[j]
            if msg < 0:
                total_sign = -total_sign
            mag = abs(msg)
            if mag < min1:
                min2 = min1
                min1 = mag
                argmin = j
            elif mag < min2:
                min2 = mag

        for j in range(start, end):
            sign_excl = total_sign if v2c[j] >= 0 else -total_sign
            min_excl = min2 if j == argmin else min1
            mag = alpha * max(min_excl - offset, 0.0)
            c2v[j] = sign_excl * min(mag, limit)


@numba.njit(cache=True)
def tanh_check_update(
    v2c: np.ndarray,
    c2v: np.ndarray,
    check_bounds: np.ndarray,
    limit: float,
) -> None:
    """Tanh rule ``2 * atanh(prod_{k != j} tanh(v2c_k / 2))``.

    The extrinsic product uses prefix and suffix products so that a zero
    message never causes a division.
    """
    num_checks = len(check_bounds) - 1
    for ci in range(num_checks):
        start = check_bounds[ci]
        end = check_bounds[ci + 1]
        d = end - start
        if d == 0:
            continue
        t = np.empty(d)
        for j in range(d):
            t[j] = min(max(np.tanh(v2c[start + j] / 2.0), -TANH_CLIP), TANH_CLIP)

        prefix = np.ones(d + 1)
        for j in range(d):
            prefix[j + 1] = prefix[j] * t[j]
        suffix = 1.0
        for j in range(d - 1, -1, -1):
            prod = prefix[j] * suffix
            prod = min(max(prod, -TANH_CLIP), TANH_CLIP)
            msg = 2.0 * np.arctanh(prod)
            c2v[start + j] = min(max(msg, -limit), limit)
            suffix *= t[j]


@numba.njit(cache=True)
def phi_check_update(
    v2c: np.ndarray,
    c2v: np.ndarray,
    check_bounds: np.ndarray,
    limit: float,
) -> None:
    """Log-domain sum-product: ``sign * phi(sum_{k != j} phi(|v2c_k|))``.

    A message of (near) zero magnitude makes every other output on its check
    exactly zero; only the edge carrying it receives information.
    """
    num_checks = len(check_bounds) - 1
    for ci in range(num_checks):
        start = check_bounds[ci]
        end = check_bounds[ci + 1]
        if end == start:
            continue
        total_sign = 1.0
        total_phi = 0.0
        zeros = 0
        zero_edge = -1
        for j in range(start, end):
            if v2c[j] < 0:
                total_sign = -total_sign
            mag = abs(v2c[j])
            if mag < PHI_MIN_ARG:
                zeros += 1
                zero_edge = j
            else:
                total_phi += _phi(mag)

        for j in range(start, end):
            if zeros > 1 or (zeros == 1 and j != zero_edge):
                c2v[j] = 0.0
                continue
            sign_excl = total_sign if v2c[j] >= 0 else -total_sign
            excl = total_phi if zeros == 1 else max(total_phi - _phi(abs(v2c[j])), 0.0)
            c2v[j] = sign_excl * min(_phi(excl), limit)


@numba.njit(cache=True)
def layered_min_sum_sweep(
    posterior: np.ndarray,
    c2v: np.ndarray,
    edge_var: np.ndarray,
    check_bounds: np.ndarray,
    alpha: float,
    offset: float,
    limit: float,
) -> None:
    """One row-serial pass of offset/scaled min-sum.

    For each check the incoming message ``q = posterior - c2v_old`` is formed
    from the current posterior, the check message is recomputed and the
    posterior of every connected bit is updated before the next row is visited.
    """
    num_checks = len(check_bounds) - 1
    for ci in range(num_checks):
        start = check_bounds[ci]
        end = check_bounds[ci + 1]
        d = end - start
        if d == 0:
            continue
        q = np.empty(d)
        total_sign = 1.0
        min1 = np.inf
        min2 = np.inf
        argmin = 0
        for j in range(d):
            val = posterior[edge_var[start + j]] - c2v[start + j]
            val = min(max(val, -limit), limit)
            q[j] = val
            if val < 0:
                total_sign = -total_sign
            mag = abs(val)
            if mag < min1:
                min2 = min1
                min1 = mag
                argmin = j
            elif mag < min2:
                min2 = mag

        for j in range(d):
            if d == 1:
                new = limit
            else:
                sign_excl = total_sign if q[j] >= 0 else -total_sign
                min_excl = min2 if j == argmin else min1
                new = sign_excl * min(alpha * max(min_excl - offset, 0.0), limit)
            c2v[start + j] = new
            posterior[edge_var[start + j]] = min(max(q[j] + new, -limit), limit)


@numba.njit(cache=True)
def extrinsic_parity_product(
    edge_bits: np.ndarray,
    edge_weight: np.ndarray,
    check_bounds: np.ndarray,
    parity: np.ndarray,
    product: np.ndarray,
) -> None:
    """Per edge: XOR of the other bits on the check and the product of their weights."""
    num_checks = len(check_bounds) - 1
    for ci in range(num_checks):
        start = check_bounds[ci]
        end = check_bounds[ci + 1]
        d = end - start
        if d == 0:
            continue
        total = 0
        prefix = np.ones(d + 1)
        for j in range(d):
            total ^= edge_bits[start + j]
            prefix[j + 1] = prefix[j] * edge_weight[start + j]
        suffix = 1.0
        for j in range(d - 1, -1, -1):
            parity[start + j] = total ^ edge_bits[start + j]
            product[start + j] = prefix[j] * suffix
            suffix *= edge_weight[start + j]
