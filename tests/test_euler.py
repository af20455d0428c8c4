#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests of the hyperbolic systems
"""

import numpy as np
import pytest

from Hypsys.DiffEq.Euler import Euler
from Hypsys.DiffEq.Advection import Advection
from Hypsys.DiffEq.Burgers import Burgers
import Hypsys.DiffEq.EulerFunctions as efn
from Hypsys.Disc.NumFlux import NumFlux


def test_prim_cons_round_trip():
    hyp = Euler(1.4, dim=2)
    rho = np.array([1., 0.125, 2.])
    v = np.array([[0.1, -0.3], [0., 0.], [1., 2.]])
    p = np.array([1., 0.1, 3.])
    u = hyp.prim2cons(rho, v, p)
    rho2, v2, p2 = hyp.cons2prim(u)
    assert np.allclose(rho2, rho) and np.allclose(v2, v) and np.allclose(p2, p)

def test_flux_of_state_at_rest():
    hyp = Euler(1.4, dim=2)
    u = hyp.prim2cons([1.], [[0.,0.]], [2.])
    F = hyp.flux(u)
    assert F.shape == (1, 4, 2)
    assert np.allclose(F[0,0], 0.)
    assert np.allclose(F[0,1:3], 2.*np.eye(2))
    assert np.allclose(F[0,3], 0.)

def test_flux_1d_matches_formula():
    hyp = Euler(1.4, dim=1)
    u = hyp.prim2cons([0.5], [[2.]], [1.5])
    E = u[0,2]
    F = hyp.flux(u)[0,:,0]
    assert np.allclose(F, [1., 0.5*4. + 1.5, (E + 1.5)*2.])

@pytest.mark.parametrize('fun', [efn.davis_wave_speed, efn.two_rarefaction_wave_speed])
def test_wave_speed_of_identical_states(fun):
    hyp = Euler(1.4, dim=2)
    u = hyp.prim2cons([1., 0.5], [[0.3, 0.], [0., -1.]], [1., 2.])
    normal = np.array([[1.,0.], [0.,1.]])
    lam = fun(u, u, normal, 1.4)
    expected = np.abs([0.3, -1.]) + np.sqrt(1.4*np.array([1., 2.])/np.array([1., 0.5]))
    assert np.allclose(lam, expected)

def test_wave_speeds_are_symmetric():
    hyp = Euler(1.4, dim=1)
    ul = hyp.prim2cons([1.], [[0.]], [1.])
    ur = hyp.prim2cons([0.125], [[0.]], [0.1])
    n = np.array([[1.]])
    for fun in (efn.davis_wave_speed, efn.two_rarefaction_wave_speed):
        assert np.allclose(fun(ul, ur, n, 1.4), fun(ur, ul, -n, 1.4))
    # the two-rarefaction bound covers the sod shock speed of about 1.75
    assert efn.two_rarefaction_wave_speed(ul, ur, n, 1.4)[0] > 1.75

def test_wall_reflection():
    hyp = Euler(1.4, 'constant', 'wall', dim=2)
    u = hyp.prim2cons([1.], [[0.4, 0.2]], [1.])
    normal = np.array([[1., 0.]])
    ur = hyp.boundary_state(u, normal, np.zeros((1,2)))
    assert np.allclose(ur[0,[0,2,3]], u[0,[0,2,3]])
    assert np.isclose(ur[0,1], -u[0,1])

    # no mass leaves through the wall
    nf = NumFlux()
    nf.set_numflux('LF')
    fn1 = np.einsum('nkx,nx->nk', hyp.flux(u), normal)
    fn2 = np.einsum('nkx,nx->nk', hyp.flux(ur), normal)
    lam = hyp.max_wave_speed(u, ur, normal)
    F, F2 = nf.numflux(u, ur, fn1, fn2, lam)
    assert np.isclose(F[0,0], 0.)
    assert np.allclose(F, -F2)

def test_admissibility():
    hyp = Euler(1.4, dim=1)
    u = np.array([[1., 0., 2.5],     # ok
                  [-1., 0., 2.5],    # negative density
                  [1., 3., 2.5],     # negative internal energy
                  [np.nan, 0., 1.]])
    assert np.array_equal(hyp.is_admissible(u), [True, False, False, False])
    func, lower = hyp.derived_bounds()[0]
    assert lower == 0.
    assert np.isclose(func(u[:1])[0], 2.5)

def test_rhoe_is_concave(rng):
    hyp = Euler(1.4, dim=2)
    ua = hyp.prim2cons(rng.random(20)+0.1, rng.random((20,2))-0.5, rng.random(20)+0.1)
    ub = hyp.prim2cons(rng.random(20)+0.1, rng.random((20,2))-0.5, rng.random(20)+0.1)
    t = 0.3
    lhs = hyp.calc_rhoe(t*ua + (1-t)*ub)
    rhs = t*hyp.calc_rhoe(ua) + (1-t)*hyp.calc_rhoe(ub)
    assert np.all(lhs >= rhs - 1e-14)

def test_invalid_options_raise():
    with pytest.raises(Exception):
        Euler(1.4, wave_speed='roe')
    with pytest.raises(Exception):
        Euler(1.4, bc='inflow')
    with pytest.raises(Exception):
        Advection([1.], bc='wall')

def test_boundary_policies():
    hyp = Advection([1.], 'constant', bc='outflow')
    u = np.array([[0.3]])
    assert np.allclose(hyp.boundary_state(u, np.array([[1.]]), np.zeros((1,1))), u)
    hyp = Advection([1.], 'constant', bc='periodic')
    with pytest.raises(Exception):
        hyp.boundary_state(u, np.array([[1.]]), np.zeros((1,1)))

def test_burgers_flux_and_speed():
    hyp = Burgers(dim=2)
    u = np.array([[2.], [-1.]])
    F = hyp.flux(u)
    assert np.allclose(F[:,0,:], [[2.,2.], [0.5,0.5]])
    lam = hyp.max_wave_speed(u[:1], u[1:], np.array([[1.,0.]]))
    assert np.allclose(lam, 2.)
