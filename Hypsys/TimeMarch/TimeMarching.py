#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Time marching driver
"""

import numpy as np

from Hypsys.TimeMarch.TimeMarchingRk import TimeMarchingRk
import time as tm


class TimeMarching(TimeMarchingRk):

    tm_methods = ('explicit_euler', 'ssprk2', 'ssprk3')
    idx_print = 100 # print the solution norm every idx_print steps

    def __init__(self, evol, tm_method,
                 keep_all_ts=True, skip_ts=0,
                 bool_calc_cons_obj=False, fun_calc_cons_obj=None,
                 print_sol_norm=False, dqdt=None, max_retries=3,
                 print_progress=True):
        '''
        Parameters
        ----------
        evol : MclEvolution
            Provides dqdt(q, t), the hyperbolic system evol.hyp and the
            lumped masses evol.m
        tm_method : str
            'explicit_euler', 'ssprk2' or 'ssprk3'
        keep_all_ts : bool, optional
            Store the solution every skip_ts+1 steps in the columns of the
            returned array. Otherwise only the final state is returned.
            The default is True.
        skip_ts : int, optional
            Steps skipped between two stored frames. The default is 0.
        bool_calc_cons_obj : bool, optional
            Record the totals of the conserved variables in self.cons_obj,
            one column per frame. The default is False.
        fun_calc_cons_obj : method, optional
            Replaces hyp.calc_cons_obj(q, evol.m). The default is None.
        print_sol_norm : bool, optional
            The default is False.
        dqdt : method, optional
            Replaces evol.dqdt. The default is None.
        max_retries : int, optional
            Levels of step halving allowed after an inadmissible stage.
            The default is 3.
        '''

        self.evol = evol
        self.tm_method = tm_method
        self.keep_all_ts = keep_all_ts
        self.skip_ts = skip_ts
        assert(isinstance(self.skip_ts, int) and self.skip_ts >= 0),"skip_ts must be a non-negative integer"
        self.bool_calc_cons_obj = bool_calc_cons_obj
        self.print_sol_norm = print_sol_norm
        self.max_retries = max_retries
        self.print_progress = print_progress
        self.enforce_positivity = self.evol.hyp.enforce_positivity

        if dqdt is None: self.dqdt = self.evol.dqdt
        else: self.dqdt = dqdt

        if fun_calc_cons_obj is None and self.bool_calc_cons_obj:
            fun_calc_cons_obj = lambda q: self.evol.hyp.calc_cons_obj(q, self.evol.m)
        self.fun_calc_cons_obj = fun_calc_cons_obj

        self.cons_obj = None
        self.n_retries = 0
        self.quitsim = False
        self.failsim = False

        if self.tm_method not in self.tm_methods:
            raise Exception('Time marching method not understood. Try one of', self.tm_methods)
        self.tm_solver = getattr(self, self.tm_method)

    def solve(self, q0, dt, n_ts, t0=0.):
        '''
        Marches q0 over n_ts steps of size dt, starting at time t0.
        Returns the stored frames (len(q0), nframes+1) if keep_all_ts,
        otherwise the last state. After a failure the last good state is
        returned and self.failsim is set.
        '''
        self.len_q = np.size(q0)
        self.t_initial = t0
        self.t_final = t0 + n_ts*dt
        self.quitsim = False
        self.failsim = False
        return self.tm_solver(np.array(q0, dtype=float), dt, n_ts)

    def stop(self, msg, time, t_idx):
        print('\n ERROR: {0} at t = {1:.6g}, t_idx = {2}'.format(msg, time, t_idx))
        self.quitsim = True
        self.failsim = True

    def store_frame(self, q, q_sol, col):
        if self.keep_all_ts:
            q_sol[:,col] = q
        if self.bool_calc_cons_obj:
            self.cons_obj[:,col] = self.fun_calc_cons_obj(q)

    def common(self, q, q_sol, t_idx, n_ts, dt, dqdt):
        ''' checks and bookkeeping at the start of every step '''
        time = self.t_initial + t_idx*dt

        if not np.all(np.isfinite(q)):
            self.stop('non-finite values in q', time, t_idx)
            return
        if self.enforce_positivity and self.evol.hyp.check_positivity(q):
            self.stop('non-positive density or pressure', time, t_idx)
            return

        if t_idx % (self.skip_ts+1) == 0:
            self.store_frame(q, q_sol, t_idx//(self.skip_ts+1))

        if self.print_sol_norm and t_idx % self.idx_print == 0:
            print(f'i = {t_idx:4}, ||q|| = {np.linalg.norm(q)/np.sqrt(self.len_q):3.4}')

        if t_idx == 0:
            self.start_time = tm.time()
            if self.print_progress: print('--- Beginning Simulation ---')
        elif self.print_progress and t_idx % max(1, n_ts//100) == 0:
            elapsed = tm.time() - self.start_time
            printProgressBar(t_idx, n_ts, prefix='Progress:',
                             suffix='Complete. About {0} remaining.'.format(hms(elapsed/t_idx*(n_ts-t_idx))))

    def final_common(self, q, q_sol, t_idx, n_ts, dt, dqdt):
        ''' stores the last state unless the run already stopped '''
        if self.quitsim:
            return
        self.store_frame(q, q_sol, -1)

        if self.print_sol_norm:
            print(f'i = {t_idx:4}, ||q|| = {np.linalg.norm(q)/np.sqrt(self.len_q):3.4}')
        if self.print_progress:
            printProgressBar(n_ts, n_ts, prefix='Progress:', suffix='Complete.')
            print('... Took {0} to run.'.format(hms(tm.time() - self.start_time)))
            if self.n_retries > 0:
                print('... {0} time steps were halved after inadmissible stages.'.format(self.n_retries))

    def init_q_sol(self, q0, n_ts):
        ''' allocates the frames, column 0 is the initial state '''
        self.nframes = -(-n_ts//(self.skip_ts+1)) # ceil
        if n_ts % (self.skip_ts+1) != 0:
            print('WARNING: n_ts is not a multiple of skip_ts+1. The final state is appended as an extra frame.')

        q_sol = None
        if self.keep_all_ts:
            q_sol = np.zeros((self.len_q, self.nframes+1))
        if self.bool_calc_cons_obj:
            self.cons_obj = np.zeros((self.evol.neq, self.nframes+1))
        self.start_time = tm.time()
        return q_sol


def hms(seconds):
    seconds = int(seconds)
    return '{0}:{1:02d}:{2:02d}'.format(seconds//3600, (seconds//60)%60, seconds%60)

def printProgressBar(iteration, total, prefix='', suffix='', length=20, fill='█', printEnd="\r"):
    '''
    Prints a terminal progress bar, call it in a loop

    Parameters
    ----------
    iteration, total : int
        Current and last iteration
    prefix, suffix : str, optional
        Text before and after the bar
    length : int, optional
        Number of characters of the bar
    '''
    frac = iteration / float(total)
    filled = int(length*frac)
    bar = fill*filled + '-'*(length - filled)
    print(f'\r{prefix} |{bar}| {100*frac:.0f}% {suffix}', end=printEnd)
    if iteration == total:
        print()
