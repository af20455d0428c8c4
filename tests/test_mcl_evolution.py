#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests of the MCL evolution operator
"""

import numpy as np
import pytest

from Hypsys.DiffEq.Advection import Advection
from Hypsys.DiffEq.Euler import Euler
from Hypsys.FeEvol.MclEvolution import InadmissibleStateError
from Hypsys.FeEvol.LowOrderFlux import make_flux_policy
from Hypsys.TimeMarch.TimeMarching import TimeMarching
import Hypsys.Methods.Analysis as An


''' Constant states '''

@pytest.mark.parametrize('flux_policy,diag', [('lumped',None), ('lumped_diag_nbrs',None), ('problem',False)])
def test_constant_advection_is_steady(make_evol, flux_policy, diag):
    hyp = Advection([1.,0.5], 'constant')
    evol = make_evol(hyp, (3,3), 2, warp_factor=0.1, flux_policy=flux_policy, use_diagonal_nbrs=diag)
    x = evol.set_q0()
    assert np.allclose(evol.dqdt(x), 0., atol=1e-12)

@pytest.mark.parametrize('flux_policy', ['lumped', 'problem'])
def test_constant_euler_two_elements_is_steady(make_evol, flux_policy):
    hyp = Euler(1.4, 'constant', 'periodic', dim=1)
    evol = make_evol(hyp, 2, 2, flux_policy=flux_policy, use_diagonal_nbrs=False)
    x = evol.set_q0()
    y = np.ones_like(x)
    evol.Mult(x, y)
    assert np.allclose(y, 0., atol=1e-12)


''' Conservation '''

def test_euler_conserves_totals_on_periodic_mesh(make_evol):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=2)
    evol = make_evol(hyp, (3,3), 2, warp_factor=0.1, flux_policy='problem', use_diagonal_nbrs=False)
    x = evol.set_q0()
    fluxes = evol.ComputeFluxes(x)
    assert np.allclose(fluxes.residual.sum(axis=0), 0., atol=1e-12)
    assert np.allclose(fluxes.antidiffusion.sum(axis=0), 0., atol=1e-13)
    y = evol.dqdt(x)
    assert np.allclose(An.calc_totals(evol, y), 0., atol=1e-12)

def test_low_and_high_order_are_conservative(make_evol):
    hyp = Advection([1.,-0.7], 'square')
    evol = make_evol(hyp, (4,4), 3, warp_factor=0.05)
    fluxes = evol.ComputeFluxes(evol.set_q0())
    assert abs(np.sum(fluxes.low_order)) < 1e-12
    assert abs(np.sum(fluxes.high_order)) < 1e-12


''' Bounds '''

def test_advection_step_stays_in_local_bounds(make_evol):
    hyp = Advection([1.,0.5], 'square')
    evol = make_evol(hyp, (6,6), 2, warp_factor=0.05)
    x = evol.set_q0()
    fluxes = evol.ComputeFluxes(x)
    dt = evol.max_time_step(x)
    x_new = x + dt*evol.dqdt(x)
    n_viol, max_viol = An.check_bounds(evol, x_new, fluxes, tol=1e-10)
    assert n_viol == 0, max_viol
    assert np.min(fluxes.alpha) < 1.
    assert np.min(x_new) >= -1e-10 and np.max(x_new) <= 1. + 1e-10

def test_euler_step_stays_in_local_bounds(make_evol):
    hyp = Euler(1.4, 'sod', 'outflow', dim=1)
    evol = make_evol(hyp, 20, 2, periodic=False, flux_policy='problem', use_diagonal_nbrs=False)
    x = evol.set_q0()
    fluxes = evol.ComputeFluxes(x)
    dt = evol.max_time_step(x)
    x_new = x + dt*evol.dqdt(x)
    n_viol, _ = An.check_bounds(evol, x_new, fluxes, tol=1e-10)
    assert n_viol == 0
    u_new = x_new.reshape(hyp.neq, -1).T
    assert np.all(hyp.is_admissible(u_new))

@pytest.mark.parametrize('case', ['advection', 'euler'])
def test_edge_limiters_grow_when_raw_fluxes_shrink(make_evol, case):
    if case == 'advection':
        hyp = Advection([1.,0.5], 'square')
        evol = make_evol(hyp, (5,5), 2)
    else:
        # jump between two control points of the middle element
        hyp = Euler(1.4, 'sod', 'outflow', dim=1)
        evol = make_evol(hyp, 5, 2, periodic=False, flux_policy='problem', use_diagonal_nbrs=False)
    fl = evol.ComputeFluxes(evol.set_q0())
    alpha = evol.SolveEdgeLimiters(fl.raw, fl.d, fl.bar_ij, fl.bar_ji, fl.xmin, fl.xmax)
    assert np.allclose(alpha, fl.alpha)
    if case == 'advection':
        assert np.any(alpha < 1.)
    for s in (0.8, 0.5, 0.1):
        alpha_s = evol.SolveEdgeLimiters(s*fl.raw, fl.d, fl.bar_ij, fl.bar_ji, fl.xmin, fl.xmax)
        assert np.all(alpha_s >= alpha - 1e-14)

def test_stationary_contact_is_steady(make_evol):
    hyp = Euler(1.4, 'density_jump', 'periodic', dim=1)
    evol = make_evol(hyp, 8, 2)
    q0 = evol.set_q0()
    dt = evol.max_time_step(q0, cfl=0.9)
    tm = TimeMarching(evol, 'ssprk3', keep_all_ts=False, print_progress=False)
    q = tm.solve(q0, dt, 5)
    assert not tm.failsim
    # zero velocity and uniform pressure, the limited fluxes cancel the diffusion
    assert np.allclose(q.reshape(hyp.neq, -1)[0], q0.reshape(hyp.neq, -1)[0], atol=1e-10)

def test_advected_density_bump_stays_between_one_and_two(make_evol):
    hyp = Euler(1.4, 'constant', 'periodic', dim=1)
    evol = make_evol(hyp, 2, 2)
    n = evol.ndofs
    rho = np.ones(n)
    rho[2] = 2.
    x = evol.pack(hyp.prim2cons(rho, np.ones((n,1)), np.ones(n)))
    dt = evol.max_time_step(x)
    x_new = x + dt*evol.dqdt(x)
    rho_new = x_new.reshape(hyp.neq, -1)[0]
    assert np.min(rho_new) >= 1. - 1e-12
    assert np.max(rho_new) <= 2. + 1e-12
    # the bump is carried into the second element
    assert rho_new[3] > 1. + 1e-3
    assert np.allclose(An.calc_totals(evol, x_new), An.calc_totals(evol, x), rtol=1e-12)


''' Accuracy '''

def test_linear_profile_recovers_high_order(make_evol):
    linear = lambda xy: xy[:,:1]
    hyp = Advection(1., linear, bc='dirichlet')
    evol = make_evol(hyp, 5, 1, periodic=False)
    evol_none = make_evol(hyp, 5, 1, periodic=False, settings={'limiter':'none'})
    x = evol.set_q0()
    y = evol.dqdt(x)
    y_none = evol_none.dqdt(x)
    assert np.allclose(y_none, -1., atol=1e-12)
    # only the inflow element is limited
    assert np.allclose(y[2:], -1., atol=1e-12)
    assert np.allclose(y[2:], y_none[2:], atol=1e-12)

@pytest.mark.parametrize('diag', [False, True])
def test_unlimited_without_mass_correction_is_galerkin(make_evol, diag):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=2)
    evol = make_evol(hyp, (3,3), 3, warp_factor=0.1, flux_policy='problem', use_diagonal_nbrs=diag,
                     settings={'limiter':'none', 'mass_correction':False})
    fluxes = evol.ComputeFluxes(evol.set_q0())
    assert np.allclose(fluxes.residual, fluxes.high_order, atol=1e-12)

def test_low_limiter_gives_low_order(make_evol):
    hyp = Advection([0.3,1.], 'gausswave')
    evol = make_evol(hyp, (3,3), 2, settings={'limiter':'low'})
    fluxes = evol.ComputeFluxes(evol.set_q0())
    assert np.all(fluxes.alpha == 0.)
    assert np.allclose(fluxes.residual, fluxes.low_order)


''' Interface '''

def test_state_is_not_modified(make_evol):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=1)
    evol = make_evol(hyp, 6, 3)
    x = evol.set_q0()
    x_copy = np.copy(x)
    y = np.empty_like(x)
    evol.Mult(x, y)
    assert np.array_equal(x, x_copy)
    assert not np.allclose(y, 0.)

def test_partition_matches_serial(make_evol):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=2)
    evol = make_evol(hyp, (4,4), 2, warp_factor=0.1)
    evol_p = make_evol(hyp, (4,4), 2, warp_factor=0.1, elements=np.arange(6))
    assert evol_p.nghost > 0
    x = evol.set_q0()
    y = evol.dqdt(x)

    dofs = evol_p.dofs
    x_loc = dofs.restrict(x, hyp.neq)
    y_loc = np.empty_like(x_loc)
    evol_p.ComputeTimeDerivative(x_loc, y_loc, dofs.gather_ghosts(x, hyp.neq))
    assert np.allclose(y_loc, dofs.restrict(y, hyp.neq), rtol=1e-12, atol=1e-12)

def test_missing_ghost_buffer_raises(make_evol):
    hyp = Advection([1.,1.], 'gausswave')
    evol_p = make_evol(hyp, (4,4), 1, elements=np.arange(4))
    x_loc = np.zeros(evol_p.ndofs)
    with pytest.raises(Exception, match='x_mpi'):
        evol_p.Mult(x_loc, np.empty_like(x_loc))

def test_inadmissible_state_raises(make_evol):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=1)
    evol = make_evol(hyp, 4, 2)
    x = evol.set_q0()
    x[0] = -1.
    with pytest.raises(InadmissibleStateError):
        evol.dqdt(x)

def test_face_terms_are_antisymmetric(make_evol):
    hyp = Euler(1.4, 'density_wave', 'periodic', dim=2)
    evol = make_evol(hyp, (3,3), 2, warp_factor=0.1)
    fluxes = evol.ComputeFluxes(evol.set_q0())
    y1 = {}
    for tr in fluxes.faces:
        for a in range(len(tr.dofs)):
            y1[(tr.dofs[a], tr.nbr[a])] = tr.y1[a]
    for tr in fluxes.faces:
        for a in range(len(tr.dofs)):
            assert np.allclose(tr.y2[a], y1[(tr.nbr[a], tr.dofs[a])], atol=1e-13)

def test_diagonal_neighbours_change_the_stencil(make_evol):
    hyp = Advection([1.,0.5], 'gausswave')
    evol = make_evol(hyp, (2,2), 2, flux_policy='lumped')
    evol_d = make_evol(hyp, (2,2), 2, flux_policy='lumped_diag_nbrs')
    assert evol.ops.nedge == 12
    assert evol_d.ops.nedge == 20
    x = evol.set_q0()
    assert not np.allclose(evol.dqdt(x), evol_d.dqdt(x))
    with pytest.raises(Exception):
        evol.set_operators(evol_d.ops)

def test_flux_policy_arguments(make_evol):
    hyp = Advection([1.,0.5])
    with pytest.raises(Exception):
        make_flux_policy('lumped', hyp, True)
    with pytest.raises(Exception):
        make_flux_policy('problem', hyp)
    with pytest.raises(Exception):
        make_flux_policy('upwind', hyp)
    assert make_flux_policy('problem', hyp, True).use_diagonal_nbrs

def test_settings(make_evol, capsys):
    hyp = Advection([1.], 'gausswave')
    make_evol(hyp, 4, 1, settings={'limitr':'mcl'})
    assert 'WARNING' in capsys.readouterr().out
    with pytest.raises(Exception):
        make_evol(hyp, 4, 1, settings={'limiter':'fct'})
    with pytest.raises(Exception):
        make_evol(hyp, 4, 1, settings={'numflux':'roe'})

def test_max_time_step_scales_with_cfl(make_evol):
    hyp = Advection([1.,0.5], 'gausswave')
    evol = make_evol(hyp, (3,3), 2)
    x = evol.set_q0()
    dt = evol.max_time_step(x)
    assert 0. < dt < np.inf
    assert np.isclose(evol.max_time_step(x, cfl=0.5), 0.5*dt)

def test_projection_reproduces_constants(make_evol):
    hyp = Advection([1.,0.5], 'constant')
    evol = make_evol(hyp, (3,3), 2, warp_factor=0.1)
    assert np.allclose(evol.set_q0(method='project'), 1.)
    assert np.allclose(evol.GetNodeVal(np.ones(evol.nd)), 1.)
