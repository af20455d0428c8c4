#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lax-Friedrichs numerical fluxes
"""
import numpy as np

'''
This file has one class: NumFlux. This determines the numerical flux used on
element faces by the evolution operator. The fluxes are two-sided: the value
returned for side B is minus the value for side A, so what leaves one element
enters its neighbour.
'''

class NumFlux:

    numflux_types = ('LF', 'LF_global')

    def set_numflux(self, method):
        '''
        Purpose
        ----------
        Set the method used to calculate the numerical flux.

        Parameters
        ----------
        method : str
            The desired method.
        '''
        if method == 'LF' or method == 'rusanov':
            self.numflux = self.LF
            self.global_wave_speed = False
        elif method == 'LF_global':
            # same flux, but with the largest wave speed over all faces
            self.numflux = self.LF
            self.global_wave_speed = True
        else:
            raise Exception('Choice of Numerical Flux not understood. Try one of', self.numflux_types)

    def LF(self, qA, qB, fnA, fnB, lam):
        '''
        Local Lax-Friedrichs flux for systems.

        Parameters
        ----------
        qA : np array (n, neq)
            The solution on the side whose outward normal is used.
        qB : np array (n, neq)
           The solution on the other side of the interface.
        fnA, fnB : np array (n, neq)
            Normal physical fluxes f(q).n on both sides.
        lam : np array (n,)
            the constant that controls dissipation. This should be greater
            than the max wave speed between qA and qB.

        Returns
        -------
        The numerical flux on both sides of the interface.
        '''
        flux = 0.5*(fnA + fnB) + 0.5*lam[:,None]*(qA - qB)
        return flux, -flux
