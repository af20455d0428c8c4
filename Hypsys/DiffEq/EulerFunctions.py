#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Wave speed bounds for the Euler equations
"""

from numba import njit
import numpy as np

''' A collection of pointwise functions for the compressible Euler equations
    in conservative variables (rho, rho*v, E), with states stored as (n, neq)
    arrays and neq = dim + 2. All jitted for speed '''

@njit
def calc_flux(u, gamma):
    ''' the flux tensor f(u), shape (n, neq, dim) '''
    n, neq = u.shape
    dim = neq - 2
    F = np.zeros((n, neq, dim))
    for a in range(n):
        rho = u[a,0]
        E = u[a,neq-1]
        k = 0.
        for d in range(dim):
            k += u[a,1+d]*u[a,1+d]
        p = (gamma-1)*(E - 0.5*k/rho)
        for d in range(dim):
            vd = u[a,1+d]/rho
            F[a,0,d] = u[a,1+d]
            for c in range(dim):
                F[a,1+c,d] = u[a,1+c]*vd
            F[a,1+d,d] += p
            F[a,neq-1,d] = (E + p)*vd
    return F

@njit
def calc_rhoe(u):
    ''' internal energy per unit volume, E - |m|^2/(2 rho). Concave in u for rho > 0 '''
    n, neq = u.shape
    rhoe = np.zeros(n)
    for a in range(n):
        k = 0.
        for d in range(neq-2):
            k += u[a,1+d]*u[a,1+d]
        rhoe[a] = u[a,neq-1] - 0.5*k/u[a,0]
    return rhoe

@njit
def calc_p(u, gamma):
    ''' pressure from the ideal gas law '''
    return (gamma-1)*calc_rhoe(u)

@njit
def calc_a(u, gamma):
    ''' speed of sound, clipped at zero pressure '''
    p = calc_p(u, gamma)
    return np.sqrt(gamma*np.maximum(p, 0.)/u[:,0])

@njit
def calc_vn(u, normal):
    ''' velocity in the direction of the normal '''
    n, neq = u.shape
    vn = np.zeros(n)
    for a in range(n):
        for d in range(neq-2):
            vn[a] += u[a,1+d]*normal[a,d]
        vn[a] /= u[a,0]
    return vn

@njit
def davis_wave_speed(ul, ur, normal, gamma):
    ''' max(|vn_l| + a_l, |vn_r| + a_r), the estimate of Davis (1988) '''
    sl = np.abs(calc_vn(ul, normal)) + calc_a(ul, gamma)
    sr = np.abs(calc_vn(ur, normal)) + calc_a(ur, gamma)
    return np.maximum(sl, sr)

@njit
def two_rarefaction_wave_speed(ul, ur, normal, gamma):
    '''
    Guaranteed upper bound of the max wave speed of the Riemann problem,
    from the two-rarefaction pressure estimate (Guermond & Popov 2016).
    Valid for 1 < gamma <= 5/3.
    '''
    n = ul.shape[0]
    z = (gamma-1)/(2*gamma)
    c = (gamma+1)/(2*gamma)
    vl = calc_vn(ul, normal)
    vr = calc_vn(ur, normal)
    pl = np.maximum(calc_p(ul, gamma), 1e-300)
    pr = np.maximum(calc_p(ur, gamma), 1e-300)
    al = np.sqrt(gamma*pl/ul[:,0])
    ar = np.sqrt(gamma*pr/ur[:,0])
    lam = np.zeros(n)
    for a in range(n):
        num = al[a] + ar[a] - 0.5*(gamma-1)*(vr[a] - vl[a])
        if num <= 0.:
            pstar = 0. # vacuum in the two-rarefaction solution
        else:
            pstar = (num / (al[a]*pl[a]**(-z) + ar[a]*pr[a]**(-z)))**(1/z)
        lam1 = vl[a] - al[a]*np.sqrt(1 + c*max((pstar - pl[a])/pl[a], 0.))
        lam3 = vr[a] + ar[a]*np.sqrt(1 + c*max((pstar - pr[a])/pr[a], 0.))
        lam[a] = max(abs(lam1), abs(lam3))
    return lam

@njit
def reflect(u, normal):
    ''' mirror state for slip walls: the normal momentum changes sign '''
    n, neq = u.shape
    ur = u.copy()
    for a in range(n):
        mn = 0.
        for d in range(neq-2):
            mn += u[a,1+d]*normal[a,d]
        for d in range(neq-2):
            ur[a,1+d] -= 2*mn*normal[a,d]
    return ur
