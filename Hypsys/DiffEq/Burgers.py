#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Inviscid Burgers equation
"""

import numpy as np

from Hypsys.DiffEq.HypSysBase import HypSysBase

class Burgers(HypSysBase):
    '''
    Purpose
    ----------
    This class provides the required functions to solve the inviscid Burgers
    equation du/dt + div(b u^2/2) = 0, with b = 1 in 1D and b = (1,1) in 2D.
    '''

    diffeq_name = 'Burgers'
    neq = 1
    cons_obj_name = ('Mass',)

    def __init__(self, para=None, q0_type='sinwave', bc='periodic', dim=1):
        super().__init__(para, q0_type, bc)
        assert(dim in (1,2)),'Burgers only set up for 1D and 2D'
        self.dim = dim
        self.b = np.ones(dim)

    def flux(self, u):
        return 0.5*u[:,:,None]**2 * self.b

    def max_wave_speed(self, ul, ur, normal):
        return np.maximum(np.abs(ul[:,0]), np.abs(ur[:,0])) * np.abs(normal @ self.b)
