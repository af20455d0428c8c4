#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SSP Runge-Kutta methods
"""

import traceback

from Hypsys.FeEvol.MclEvolution import InadmissibleStateError

'''
Strong stability preserving (SSP) Runge-Kutta methods in Shu-Osher form.
Every stage is a convex combination of the initial state and a forward Euler
step, u_s = a_s u_0 + (1 - a_s)(u_{s-1} + dt L(u_{s-1})), so a bound-preserving
forward Euler step gives a bound-preserving RK step for the same dt. Only
autonomous systems are considered.

If a stage produces an inadmissible state, the step is redone as two half
steps, up to max_retries times.
'''

class TimeMarchingRk:

    ''' Specific RK methods '''

    def explicit_euler(self, q, dt, n_ts):
        return self.ssp_general(q, dt, n_ts, [0.])

    def ssprk2(self, q, dt, n_ts):
        return self.ssp_general(q, dt, n_ts, [0., 1./2.])

    def ssprk3(self, q, dt, n_ts):
        return self.ssp_general(q, dt, n_ts, [0., 3./4., 1./3.])

    ''' General SSP method '''

    def ssp_step(self, q, t, dt, a_vec, k1=None):
        ''' one step, k1 is the derivative at q if already known '''
        q_stage = q
        for s, a in enumerate(a_vec):
            if s == 0 and k1 is not None:
                k = k1
            else:
                k = self.dqdt(q_stage, t)
            q_stage = a*q + (1.-a)*(q_stage + dt*k)
        return q_stage

    def ssp_advance(self, q, t, dt, a_vec, k1=None, depth=0):
        ''' one step with halving on inadmissible stages '''
        try:
            return self.ssp_step(q, t, dt, a_vec, k1)
        except InadmissibleStateError as e:
            if depth >= self.max_retries:
                raise
            print('WARNING: {0} at t = {1:.6g}. Retrying with two steps of dt = {2:.3g}.'.format(e, t, dt/2))
            self.n_retries += 1
            q_half = self.ssp_advance(q, t, dt/2, a_vec, k1, depth+1)
            return self.ssp_advance(q_half, t+dt/2, dt/2, a_vec, None, depth+1)

    def ssp_general(self, q, dt, n_ts, a_vec):

        q_sol = self.init_q_sol(q, n_ts)
        self.n_retries = 0
        k1 = None

        for i in range(0, n_ts):

            t = i * dt + self.t_initial

            try:
                k1 = self.dqdt(q, t)
            except Exception:
                print("ERROR SSP: dqdt failed in first stage at t = {0:.6g}. Returning last q.".format(t))
                traceback.print_exc()
                self.quitsim = True
                self.failsim = True
                break
            self.common(q, q_sol, i, n_ts, dt, k1)
            if self.quitsim: break

            try:
                q = self.ssp_advance(q, t, dt, a_vec, k1)
            except Exception:
                print("ERROR SSP: step failed at t = {0:.6g} after {1} retries. Returning last q.".format(t, self.max_retries))
                traceback.print_exc()
                self.quitsim = True
                self.failsim = True
                break

        self.final_common(q, q_sol, n_ts, n_ts, dt, k1)
        if self.keep_all_ts:
            return q_sol
        return q
