#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests of the limiter kernels
"""

import numpy as np
import scipy.sparse as sp
import pytest

import Hypsys.Methods.Functions as fn


def random_edges(rng, nedge=200, ncomp=2):
    d = rng.random(nedge) + 0.1
    bar_ij = rng.random((nedge, ncomp))
    bar_ji = rng.random((nedge, ncomp))
    min_i = bar_ij - rng.random((nedge, ncomp))
    max_i = bar_ij + rng.random((nedge, ncomp))
    min_j = bar_ji - rng.random((nedge, ncomp))
    max_j = bar_ji + rng.random((nedge, ncomp))
    flux = 4.*(rng.random((nedge, ncomp)) - 0.5)
    return flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j

def test_limited_bar_states_stay_in_bounds(rng):
    flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j = random_edges(rng)
    alpha = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j)
    assert np.all((alpha >= 0.) & (alpha <= 1.))
    g = alpha*flux/(2.*d[:,None])
    tol = 1e-14
    assert np.all(bar_ij + g <= max_i + tol) and np.all(bar_ij + g >= min_i - tol)
    assert np.all(bar_ji - g <= max_j + tol) and np.all(bar_ji - g >= min_j - tol)
    # some fluxes need limiting with this data
    assert np.any(alpha < 1.)

def test_small_fluxes_are_not_limited(rng):
    flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j = random_edges(rng)
    flux = 1e-3*flux
    min_i -= 1.; max_i += 1.; min_j -= 1.; max_j += 1.
    alpha = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j)
    assert np.all(alpha == 1.)

def test_no_headroom_gives_low_order(rng):
    flux, d, bar_ij, bar_ji, _, _, min_j, max_j = random_edges(rng, 50, 1)
    flux = np.abs(flux) + 0.1
    alpha = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, bar_ij - 1., bar_ij, min_j, max_j)
    assert np.all(alpha == 0.)

def test_zero_flux_keeps_unit_coefficient():
    z = np.zeros((3,1))
    alpha = fn.mcl_edge_limiter(z, np.zeros(3), z, z, z, z, z, z)
    assert np.all(alpha == 1.)

def test_limiting_is_monotone_in_headroom(rng):
    flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j = random_edges(rng)
    alpha = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j)
    wider = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i - 0.1, max_i + 0.1,
                                min_j - 0.1, max_j + 0.1)
    assert np.all(wider >= alpha)

def test_csr_min_max_matches_dense(rng):
    A = sp.random(20, 30, density=0.2, random_state=4, format='csr')
    A = A + sp.eye(20, 30, format='csr')
    A.sort_indices()
    vals = rng.random((30, 2))
    vmin, vmax = fn.csr_min_max(A.indptr, A.indices, vals)
    for i in range(20):
        cols = A.indices[A.indptr[i]:A.indptr[i+1]]
        assert np.allclose(vmin[i], vals[cols].min(axis=0))
        assert np.allclose(vmax[i], vals[cols].max(axis=0))

@pytest.mark.parametrize('scale', [0.9, 0.5, 0.1])
def test_scaled_down_fluxes_are_limited_less(rng, scale):
    flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j = random_edges(rng)
    alpha = fn.mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j)
    alpha_s = fn.mcl_edge_limiter(scale*flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j)
    assert np.all(alpha_s >= alpha)
    # the limited correction never grows when the raw flux shrinks
    assert np.all(np.abs(alpha_s*scale*flux) <= np.abs(alpha*flux) + 1e-14)
