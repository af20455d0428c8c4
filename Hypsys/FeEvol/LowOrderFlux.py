#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Low-order flux policies
"""

import numpy as np

'''
Low-order flux policies. Each policy decides the graph viscosity d_ij of the
lumped low-order scheme and whether the low-order stencil of a square couples
corner-adjacent dofs. The evolution operator only calls LinearFluxLumping, so
new variants only need a new viscosity.
'''

class LowOrderFluxPolicy:

    name = None
    use_diagonal_nbrs = None

    def __init__(self, hyp):
        self.hyp = hyp

    def viscosity(self, ui, uj, cij, cji):
        ''' Rusanov-type d_ij = max(lam_ij |c_ij|, lam_ji |c_ji|) '''
        nij = np.linalg.norm(cij, axis=1)
        nji = np.linalg.norm(cji, axis=1)
        eij = cij / np.maximum(nij, 1e-300)[:,None]
        eji = cji / np.maximum(nji, 1e-300)[:,None]
        lij = self.hyp.max_wave_speed(ui, uj, eij)
        lji = self.hyp.max_wave_speed(uj, ui, eji)
        return np.maximum(lij*nij, lji*nji)

    def LinearFluxLumping(self, ui, uj, fi, fj, cij, cji):
        '''
        Low-order fluxes of a batch of edges (i,j).

        Parameters
        ----------
        ui, uj : np array (n, neq)
            States at both ends
        fi, fj : np array (n, neq, dim)
            Physical fluxes at both ends
        cij, cji : np array (n, dim)
            Low-order coefficients

        Returns
        -------
        d : (n,) graph viscosity
        bar_ij, bar_ji : (n, neq) bar states seen from i and from j
        y_ij, y_ji : (n, neq) low-order contributions 2 d (bar_ij - u_i) to i
            and 2 d (bar_ji - u_j) to j
        '''
        d = self.viscosity(ui, uj, cij, cji)
        dfij = np.einsum('nkx,nx->nk', fj - fi, cij)
        dfji = np.einsum('nkx,nx->nk', fi - fj, cji)
        y_ij = d[:,None]*(uj - ui) - dfij
        y_ji = d[:,None]*(ui - uj) - dfji

        pos = d > 0.
        d2 = np.where(pos, 2.*d, 1.)[:,None]
        avg = 0.5*(ui + uj)
        bar_ij = np.where(pos[:,None], avg - dfij/d2, avg)
        bar_ji = np.where(pos[:,None], avg - dfji/d2, avg)
        return d, bar_ij, bar_ji, y_ij, y_ji


class LumpedDiagonalFlux(LowOrderFluxPolicy):
    ''' lumped scheme, corner-adjacent couplings lumped onto the diagonal '''
    name = 'lumped'
    use_diagonal_nbrs = False


class LumpedDiagonalNbrFlux(LowOrderFluxPolicy):
    ''' lumped scheme that keeps corner-adjacent dofs as neighbours '''
    name = 'lumped_diag_nbrs'
    use_diagonal_nbrs = True


class ProblemSpecificFlux(LowOrderFluxPolicy):
    ''' viscosity supplied by the hyperbolic system (hyp.graph_viscosity) '''
    name = 'problem'

    def __init__(self, hyp, use_diagonal_nbrs):
        super().__init__(hyp)
        if not isinstance(use_diagonal_nbrs, (bool, np.bool_)):
            raise Exception('use_diagonal_nbrs must be set explicitly to True or False')
        self.use_diagonal_nbrs = bool(use_diagonal_nbrs)
        if hyp.graph_viscosity is None:
            print('WARNING: {0} has no problem-specific graph viscosity. Using the Rusanov bound.'.format(hyp.diffeq_name))

    def viscosity(self, ui, uj, cij, cji):
        if self.hyp.graph_viscosity is None:
            return super().viscosity(ui, uj, cij, cji)
        return self.hyp.graph_viscosity(ui, uj, cij, cji)


flux_policies = {'lumped': LumpedDiagonalFlux,
                 'lumped_diag_nbrs': LumpedDiagonalNbrFlux,
                 'problem': ProblemSpecificFlux}

def make_flux_policy(name, hyp, use_diagonal_nbrs=None):
    '''
    Parameters
    ----------
    name : str
        'lumped', 'lumped_diag_nbrs' or 'problem'
    use_diagonal_nbrs : bool, optional
        Required for 'problem'. For the lumped policies it is fixed by the
        policy and, if given, must agree.
    '''
    if name not in flux_policies:
        raise Exception('Low-order flux policy not understood. Try one of', tuple(flux_policies))
    if name == 'problem':
        return ProblemSpecificFlux(hyp, use_diagonal_nbrs)
    policy = flux_policies[name](hyp)
    if use_diagonal_nbrs is not None and bool(use_diagonal_nbrs) != policy.use_diagonal_nbrs:
        raise Exception('Policy {0} requires use_diagonal_nbrs={1}'.format(name, policy.use_diagonal_nbrs))
    return policy
