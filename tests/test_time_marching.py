#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests of the time marching
"""

from types import SimpleNamespace

import numpy as np
import pytest

from Hypsys.DiffEq.Advection import Advection
from Hypsys.FeEvol.MclEvolution import InadmissibleStateError
from Hypsys.TimeMarch.TimeMarching import TimeMarching


def decay_evol():
    ''' dq/dt = -q, negative states are inadmissible '''
    def dqdt(q, t):
        if np.any(q < 0):
            raise InadmissibleStateError('negative state')
        return -q
    return SimpleNamespace(hyp=SimpleNamespace(enforce_positivity=False), dqdt=dqdt)


def test_ssprk3_keeps_bounds_and_mass(make_evol):
    hyp = Advection([1.], 'square')
    evol = make_evol(hyp, 10, 2)
    q0 = evol.set_q0()
    dt = evol.max_time_step(q0)
    tm = TimeMarching(evol, 'ssprk3', keep_all_ts=True, skip_ts=4,
                      bool_calc_cons_obj=True, print_progress=False)
    q_sol = tm.solve(q0, dt, 20)
    assert not tm.failsim
    assert q_sol.shape == (q0.size, 5)
    assert np.array_equal(q_sol[:,0], q0)
    assert np.min(q_sol) >= -1e-10 and np.max(q_sol) <= 1. + 1e-10
    assert np.allclose(tm.cons_obj, tm.cons_obj[:,:1], rtol=1e-12, atol=1e-13)

@pytest.mark.parametrize('method', ['explicit_euler', 'ssprk2', 'ssprk3'])
def test_methods_are_consistent(method):
    tm = TimeMarching(decay_evol(), method, keep_all_ts=False, print_progress=False)
    q = tm.solve(np.array([1.]), 0.01, 100)
    assert abs(q[0] - np.exp(-1.)) < 0.01

def test_inadmissible_stage_halves_the_step():
    tm = TimeMarching(decay_evol(), 'ssprk2', keep_all_ts=False, print_progress=False)
    q = tm.solve(np.array([1.]), 1.5, 1)
    assert not tm.failsim
    assert tm.n_retries == 1
    # two steps of dt = 0.75 give a factor 1 - dt + dt^2/2 each
    assert np.isclose(q[0], 0.53125**2)

def test_failed_retries_return_last_state():
    tm = TimeMarching(decay_evol(), 'ssprk2', keep_all_ts=False, print_progress=False,
                      max_retries=0)
    q = tm.solve(np.array([1.]), 1.5, 3)
    assert tm.failsim
    assert np.array_equal(q, [1.])

def test_unknown_method_raises():
    with pytest.raises(Exception):
        TimeMarching(decay_evol(), 'rk4')
