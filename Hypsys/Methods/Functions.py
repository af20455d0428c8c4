#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compiled kernels of the limiter
"""

from numba import njit
import numpy as np


@njit
def mcl_edge_limiter(flux, d, bar_ij, bar_ji, min_i, max_i, min_j, max_j):
    '''
    Limiting coefficients of the monolithic convex limiter, one per edge and
    bounded component. The limited flux alpha*f, added to i and subtracted
    from j, keeps bar_ij + alpha*f/(2d) in [min_i, max_i] and
    bar_ji - alpha*f/(2d) in [min_j, max_j].

    Parameters
    ----------
    flux : numpy array of shape (nedge, ncomp)
        Raw antidiffusive fluxes
    d : numpy array of shape (nedge,)
        Graph viscosities
    bar_ij, bar_ji : numpy arrays of shape (nedge, ncomp)
        Bar states seen from i and from j
    min_i, max_i, min_j, max_j : numpy arrays of shape (nedge, ncomp)
        Local bounds of the two end points

    Returns
    -------
    alpha : numpy array of shape (nedge, ncomp), entries in [0,1]
    '''
    nedge, ncomp = flux.shape
    alpha = np.ones((nedge, ncomp))
    for a in range(nedge):
        d2 = 2.*d[a]
        for k in range(ncomp):
            f = flux[a,k]
            if f > 0.:
                fstar = min(f, d2*(max_i[a,k] - bar_ij[a,k]), d2*(bar_ji[a,k] - min_j[a,k]))
            elif f < 0.:
                fstar = max(f, d2*(min_i[a,k] - bar_ij[a,k]), d2*(bar_ji[a,k] - max_j[a,k]))
            else:
                continue
            # negative headroom means no admissible correction
            alpha[a,k] = min(1., max(0., fstar/f))
    return alpha

@njit
def csr_min_max(indptr, indices, vals):
    '''
    Row-wise min and max of vals over the columns of a CSR sparsity pattern.

    Parameters
    ----------
    indptr, indices : CSR arrays of a matrix with nrows rows
    vals : numpy array of shape (ncols, ncomp)

    Returns
    -------
    vmin, vmax : numpy arrays of shape (nrows, ncomp)
    '''
    nrows = len(indptr) - 1
    ncomp = vals.shape[1]
    vmin = np.empty((nrows, ncomp))
    vmax = np.empty((nrows, ncomp))
    for i in range(nrows):
        for k in range(ncomp):
            lo = np.inf
            hi = -np.inf
            for c in range(indptr[i], indptr[i+1]):
                v = vals[indices[c],k]
                if v < lo: lo = v
                if v > hi: hi = v
            vmin[i,k] = lo
            vmax[i,k] = hi
    return vmin, vmax
