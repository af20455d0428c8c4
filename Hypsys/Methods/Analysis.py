#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Diagnostics: totals, bounds, limiter statistics and errors
"""
import numpy as np
from tabulate import tabulate


def calc_totals(evol, x):
    ''' total amount of every conserved variable, sum_i m_i u_i '''
    return evol.hyp.calc_cons_obj(np.asarray(x), evol.m)

def check_bounds(evol, x_new, fluxes, tol=1e-12):
    '''
    Compares an updated state with the local bounds of the evaluation that
    produced it.

    Returns
    -------
    n_viol : int
        Number of (dof, component) pairs outside [xmin-tol, xmax+tol]
    max_viol : float
        Largest distance outside the bounds (0 if none)
    '''
    u = np.asarray(x_new, dtype=float).reshape(evol.neq, evol.ndofs).T
    vals = u[:,evol.comps]
    below = fluxes.xmin - vals
    above = vals - fluxes.xmax
    viol = np.maximum(below, above)
    n_viol = int(np.sum(viol > tol))
    return n_viol, float(max(np.max(viol, initial=0.), 0.))

def limiter_summary(fluxes, print_table=True):
    '''
    Statistics of the limiting coefficients of one evaluation.

    Returns
    -------
    dict with keys 'min', 'mean', 'limited', 'low_order', 'max_raw'
    '''
    alpha = fluxes.alpha.ravel()
    stats = {'min': float(np.min(alpha)) if alpha.size else 1.,
             'mean': float(np.mean(alpha)) if alpha.size else 1.,
             'limited': float(np.mean(alpha < 1.)) if alpha.size else 0.,
             'low_order': float(np.mean(alpha == 0.)) if alpha.size else 0.,
             'max_raw': float(np.max(np.abs(fluxes.raw), initial=0.))}
    if print_table:
        data = [['min alpha', stats['min']],
                ['mean alpha', stats['mean']],
                ['fraction limited', stats['limited']],
                ['fraction low order', stats['low_order']],
                ['max |A_ij|', stats['max_raw']]]
        print(tabulate(data, headers=['Limiter', 'Value'], tablefmt='orgtbl'))
    return stats

def calc_error(evol, x, time=0., var=0):
    '''
    L1 error of one conserved variable against hyp.exact_sol, integrated with
    the element quadrature. Divided by the domain measure.
    '''
    ops = evol.ops
    fe = evol.fe
    u, _ = evol.unpack(x, None)
    ue = u.reshape(evol.ne, evol.nd, evol.neq)[:,:,var]
    uq = ue @ fe.phi_q.T                                   # (ne, nq)
    xq = ops.QuadCoords.data.reshape(-1, fe.dim)
    exa = evol.hyp.exact_sol(time, xq)[:,var].reshape(evol.ne, fe.nq)
    wdet = ops.DetJ.data * fe.w_q
    return float(np.sum(np.abs(uq - exa)*wdet) / np.sum(wdet))

def calc_conv_rate(dof_vec, err_vec, dim, n_points=None, print_conv=True):
    '''
    Observed order of accuracy from a sequence of refined runs, measured
    against the mesh width h = Ndof^(-1/dim).

    Parameters
    ----------
    dof_vec, err_vec : array like
        Total dofs and error of every run, coarse to fine
    n_points : int, optional
        Only fit the first n_points runs. The default uses all of them.

    Returns
    -------
    rates : numpy array
        Rate between consecutive runs, rates[0] = 0
    avg_rate : float
        Slope of the least squares fit of log(err) against log(h)
    '''
    dofs = np.asarray(dof_vec, dtype=float).ravel()
    errs = np.asarray(err_vec, dtype=float).ravel()
    assert dofs.size == errs.size, "dof_vec and err_vec differ in length"
    assert dofs.size > 1, "Need at least two runs for a convergence rate"

    logh = -np.log(dofs)/dim
    loge = np.log(errs)
    rates = np.zeros(dofs.size)
    rates[1:] = np.diff(loge)/np.diff(logh)

    n = dofs.size if n_points is None else min(n_points, dofs.size)
    avg_rate = float(np.polyfit(logh[:n], loge[:n], 1)[0])

    if print_conv:
        print('Observed order: {:.3f}'.format(avg_rate))
        data = np.column_stack([dofs, np.exp(logh), errs, rates])
        print(tabulate(data, headers=['Ndof', 'h', 'L1 error', 'Rate'], tablefmt='orgtbl'))
    return rates, avg_rate
