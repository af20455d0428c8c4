#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Linear advection with a constant velocity
"""

import numpy as np

from Hypsys.DiffEq.HypSysBase import HypSysBase

class Advection(HypSysBase):
    '''
    Purpose
    ----------
    This class provides the required functions to solve the linear advection
    equation du/dt + div(a u) = 0 with a constant velocity a.
    '''

    diffeq_name = 'LinearAdvection'
    neq = 1
    has_exa_sol = True
    cons_obj_name = ('Mass',)

    def __init__(self, para, q0_type='gausswave', bc='periodic'):
        '''
        para is the advection velocity, a float in 1D or (ax, ay) in 2D
        '''
        super().__init__(para, q0_type, bc)
        self.a = np.atleast_1d(np.asarray(self.para, dtype=float))
        self.dim = len(self.a)
        assert(self.dim in (1,2)),'Advection only set up for 1D and 2D'

    def flux(self, u):
        return u[:,:,None] * self.a

    def max_wave_speed(self, ul, ur, normal):
        return np.abs(normal @ self.a)

    def graph_viscosity(self, ui, uj, cij, cji):
        ''' exact upwind bound d_ij = max(|a.c_ij|, |a.c_ji|) '''
        return np.maximum(np.abs(cij @ self.a), np.abs(cji @ self.a))

    def exact_sol(self, time=0, xy=None):
        ''' periodic transport of the initial condition '''
        xy = np.atleast_2d(xy)
        xmin = np.atleast_1d(self.xmin)
        dom_len = np.atleast_1d(self.dom_len)
        xy_mod = np.mod((xy - xmin) - self.a*time, dom_len) + xmin
        return self.set_q0(xy_mod)
