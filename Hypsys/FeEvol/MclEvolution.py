#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MCL evolution operator
"""

import numpy as np

from Hypsys.Disc.NumFlux import NumFlux
from Hypsys.FeEvol.OperatorBuilder import OperatorBuilder
from Hypsys.FeEvol.LowOrderFlux import LowOrderFluxPolicy, make_flux_policy
import Hypsys.Methods.Functions as fn

'''
Monolithic convex limiting (MCL) evolution operator.

The state x is stored as one block per conserved variable, each block ordered
element by element (dof = e*nd + i). Per evaluation:
    1. low-order element fluxes on the edges of the low-order stencil and
       Lax-Friedrichs face terms, giving bar states
    2. local bounds from the graph neighbourhood and the bar states
    3. raw antidiffusive fluxes (high-order target minus low-order)
    4. limiting coefficients per edge, then skew-symmetric accumulation
    5. division by the lumped mass
'''

class InadmissibleStateError(Exception):
    ''' A state or low-order bar state left the admissible set, the time step was too large. '''
    pass


class FaceTrace:
    ''' two-sided data at one face dof of every listed element '''

    def __init__(self, dofs, nbr, u1, u2, y1, y2, bar, lam, s):
        self.dofs = dofs    # owning dofs
        self.nbr = nbr      # neighbour index (-1 on a boundary)
        self.u1 = u1
        self.u2 = u2
        self.y1 = y1        # contribution to the owning dof
        self.y2 = y2        # contribution to the neighbour, what y1 takes from it
        self.bar = bar
        self.lam = lam
        self.s = s


class MclFluxes:
    ''' everything one evaluation computes, for the caller and for diagnostics '''

    def __init__(self, **kwargs):
        self.__dict__.update(kwargs)


class MclEvolution(NumFlux):

    settings_keys = ('limiter', 'mass_correction', 'numflux')
    limiter_types = ('mcl', 'none', 'low')

    def __init__(self, hyp, dofs, flux_policy='lumped', use_diagonal_nbrs=None,
                 settings=None, ops=None, print_progress=True):
        '''
        Parameters
        ----------
        hyp : HypSysBase
            The hyperbolic system
        dofs : DofInfo
            Connectivity, possibly of one partition
        flux_policy : str or LowOrderFluxPolicy
            'lumped', 'lumped_diag_nbrs' or 'problem'
        use_diagonal_nbrs : bool, optional
            Required for the 'problem' policy, fixed by the lumped policies.
        settings : dict, optional
            'limiter' : 'mcl' (default), 'none' (unlimited high order) or 'low'
            'mass_correction' : bool, consistent mass correction in the
                antidiffusive fluxes. The default is True.
            'numflux' : 'LF' (default) or 'LF_global'
        ops : MclOperators, optional
            A built operator set to reuse. Built here if not given.
        '''
        self.hyp = hyp
        self.dofs = dofs
        self.fe = dofs.fe
        self.print_progress = print_progress
        if self.print_progress: print('... Setting up MCL evolution')

        if settings is None: settings = {}
        self.settings = dict(settings)
        for key in self.settings:
            if key not in self.settings_keys:
                print("WARNING: setting '{0}' not understood. Ignoring it.".format(key))
        self.settings.setdefault('limiter', 'mcl')
        self.settings.setdefault('mass_correction', True)
        self.settings.setdefault('numflux', 'LF')
        if self.settings['limiter'] not in self.limiter_types:
            raise Exception('Limiter not understood. Try one of', self.limiter_types)
        self.set_numflux(self.settings['numflux'])

        if isinstance(flux_policy, LowOrderFluxPolicy):
            self.policy = flux_policy
        else:
            self.policy = make_flux_policy(flux_policy, hyp, use_diagonal_nbrs)

        if hyp.dim != self.fe.dim:
            raise Exception('Dimensions of the hyperbolic system and the mesh do not match.')
        hyp.set_mesh(dofs.mesh)

        if ops is None:
            builder = OperatorBuilder(dofs.mesh, self.fe, self.policy.use_diagonal_nbrs,
                                      elements=dofs.elements, print_progress=print_progress)
            ops = builder.build()
        self.set_operators(ops)

    def set_operators(self, ops):
        ''' attach a built operator set, e.g. after an explicit rebuild '''
        if ops.use_diagonal_nbrs != self.policy.use_diagonal_nbrs:
            raise Exception('Operators built with use_diagonal_nbrs={0} but the flux policy uses {1}'.format(
                            ops.use_diagonal_nbrs, self.policy.use_diagonal_nbrs))
        if not np.array_equal(ops.elements, self.dofs.elements):
            raise Exception('Operators were built for a different element set than DofInfo')
        self.ops = ops
        self.neq = self.hyp.neq
        self.ne = ops.ne
        self.nd = ops.nd
        self.ndofs = self.dofs.ndofs
        self.nghost = self.dofs.nghost
        self.I = ops.Edges.data[:,0]
        self.J = ops.Edges.data[:,1]
        self.m = ops.LumpedMass.data.ravel()
        self.comps = list(self.hyp.bounded_components)

    ''' State handling '''

    def unpack(self, x, x_mpi=None):
        ''' views of x (ndofs, neq) and of x extended by the ghost buffer '''
        x = np.asarray(x, dtype=float)
        assert(x.size == self.neq*self.ndofs),'State has size {0}, expected {1}'.format(x.size, self.neq*self.ndofs)
        u = x.reshape(self.neq, self.ndofs).T
        if x_mpi is None:
            if self.nghost > 0:
                raise Exception('This partition has {0} ghost dofs, x_mpi must be provided'.format(self.nghost))
            return u, u
        g = np.asarray(x_mpi, dtype=float)
        assert(g.size == self.neq*self.nghost),'Ghost buffer has size {0}, expected {1}'.format(g.size, self.neq*self.nghost)
        return u, np.vstack((u, g.reshape(self.neq, self.nghost).T))

    def pack(self, u):
        ''' (ndofs, neq) array to the block layout of the state vector '''
        return np.ascontiguousarray(u.T).ravel()

    def set_q0(self, q0_type=None, method='interpolate'):
        '''
        Initial state vector. 'interpolate' samples the initial condition at
        the Bernstein control points (keeps bounds), 'project' is the L2
        projection.
        '''
        ops = self.ops
        if method == 'interpolate':
            u = self.hyp.set_q0(ops.NodeCoords.data.reshape(-1, self.fe.dim), q0_type)
        elif method == 'project':
            fe = self.fe
            xq = ops.QuadCoords.data.reshape(-1, fe.dim)
            uq = self.hyp.set_q0(xq, q0_type).reshape(self.ne, fe.nq, self.neq)
            DetJ = ops.DetJ.data
            b = np.einsum('q,qi,eq,eqk->eik', fe.w_q, fe.phi_q, DetJ, uq)
            affine = np.all(np.abs(DetJ - DetJ[:,:1]) <= 1e-12*np.abs(DetJ[:,:1]), axis=1)
            u = np.empty((self.ne, self.nd, self.neq))
            u[affine] = np.einsum('ij,ejk->eik', ops.MassMatRefInv.data, b[affine]) / DetJ[affine,:1,None]
            if np.any(~affine):
                M = np.einsum('q,qi,qj,eq->eij', fe.w_q, fe.phi_q, fe.phi_q, DetJ[~affine])
                u[~affine] = np.linalg.solve(M, b[~affine])
            u = u.reshape(-1, self.neq)
        else:
            raise Exception("Initial condition method not understood. Try 'interpolate' or 'project'.")
        return self.pack(u)

    def GetNodeVal(self, u_elem):
        ''' values of the Bernstein expansion at the element control points '''
        V = self.fe.eval_basis(self.fe.xi_nodes)
        return V @ u_elem

    ''' Face/trace evaluation '''

    def FaceTerm(self, u_ext, f, k, e=None, lam=None):
        '''
        Two-sided trace and Lax-Friedrichs face term at face dof k of face f.

        Parameters
        ----------
        u_ext : np array (ndofs + nghost, neq)
            Local states followed by the ghost states
        f, k : int
            Face and face dof
        e : array of int, optional
            Local elements. The default is all elements.
        lam : np array, optional
            Wave speeds overriding the local estimate

        Returns
        -------
        FaceTrace with y1 = s (f(u1).n - F) and y2 = s (F - f(u2).n)
        '''
        ops = self.ops
        if e is None:
            e = np.arange(self.ne)
        e = np.atleast_1d(e)
        own = e*self.nd + self.fe.bdr_dofs[f,k]
        nbr = self.dofs.NbrDofs[e,f,k]
        if np.any(nbr >= len(u_ext)):
            raise Exception('Face neighbour owned by another partition but no ghost buffer given')
        normal = ops.FaceNormal.data[e,f]
        s = ops.FaceMass.data[e,f,k]

        u1 = u_ext[own]
        u2 = np.empty_like(u1)
        inner = nbr >= 0
        u2[inner] = u_ext[nbr[inner]]
        if not np.all(inner):
            bdr = ~inner
            u2[bdr] = self.hyp.boundary_state(u1[bdr], normal[bdr], ops.FaceCoords.data[e[bdr],f,k])

        fn1 = np.einsum('nkx,nx->nk', self.hyp.flux(u1), normal)
        fn2 = np.einsum('nkx,nx->nk', self.hyp.flux(u2), normal)
        if lam is None:
            lam = self.hyp.max_wave_speed(u1, u2, normal)
        F1, F2 = self.numflux(u1, u2, fn1, fn2, lam)
        y1 = s[:,None]*(fn1 - F1)
        y2 = s[:,None]*(-fn2 - F2)

        pos = lam > 0.
        lam2 = np.where(pos, 2.*lam, 1.)[:,None]
        avg = 0.5*(u1 + u2)
        bar = np.where(pos[:,None], avg - (fn2 - fn1)/lam2, avg)
        return FaceTrace(own, nbr, u1, u2, y1, y2, bar, lam, s)

    def face_traces(self, u_ext):
        ''' FaceTerm for every face dof of every element '''
        fe = self.fe
        lam = None
        if self.global_wave_speed:
            lam_max = 0.
            for f in range(fe.nfaces):
                for k in range(fe.nfd):
                    lam_max = max(lam_max, np.max(self.FaceTerm(u_ext, f, k).lam, initial=0.))
            lam = np.full(self.ne, lam_max)
        return [self.FaceTerm(u_ext, f, k, lam=lam) for f in range(fe.nfaces) for k in range(fe.nfd)]

    ''' Bounds and limiter '''

    def CollectBounds(self, u_ext, bar_ij, bar_ji, faces):
        '''
        Local bounds of the bounded components: min/max over the graph
        neighbours (own value included) and over all bar states of the dof.
        '''
        c = self.comps
        graph = self.dofs.graph
        xmin, xmax = fn.csr_min_max(graph.indptr, graph.indices, np.ascontiguousarray(u_ext[:,c]))
        base = (np.arange(self.ne)*self.nd)[:,None]
        for dof, bar in ((base + self.I, bar_ij), (base + self.J, bar_ji)):
            vals = bar[...,c].reshape(-1, len(c))
            np.minimum.at(xmin, dof.ravel(), vals)
            np.maximum.at(xmax, dof.ravel(), vals)
        for tr in faces:
            np.minimum.at(xmin, tr.dofs, tr.bar[:,c])
            np.maximum.at(xmax, tr.dofs, tr.bar[:,c])
        return xmin, xmax

    def ComputeRawAntidiffusion(self, ue, Fe, d, dudt_high):
        '''
        A_ij = d_ij (u_i - u_j) + Reroute.f + mt_ij (dudt_i - dudt_j), oriented
        from i to j (added to i, subtracted from j), shape (ne, nedge, neq)
        '''
        ops = self.ops
        I, J = self.I, self.J
        raw = d[...,None]*(ue[:,I] - ue[:,J])
        if ops.has_reroute:
            raw += np.einsum('eajx,ejkx->eak', ops.Reroute.data, Fe)
        if self.settings['mass_correction']:
            dH = dudt_high.reshape(self.ne, self.nd, self.neq)
            raw += ops.EdgeMass.data[...,None]*(dH[:,I] - dH[:,J])
        return raw

    def SolveEdgeLimiters(self, raw, d, bar_ij, bar_ji, xmin, xmax):
        ''' one coefficient in [0,1] per edge, shape (ne, nedge) '''
        ne, nedge, neq = raw.shape
        if self.settings['limiter'] == 'none':
            return np.ones((ne, nedge))
        elif self.settings['limiter'] == 'low':
            return np.zeros((ne, nedge))

        c = self.comps
        nc = len(c)
        I, J = self.I, self.J
        d = d.ravel()
        alpha = np.ones(ne*nedge)
        if nc > 0:
            xmin_e = xmin.reshape(ne, self.nd, nc)
            xmax_e = xmax.reshape(ne, self.nd, nc)
            flat = lambda a: np.ascontiguousarray(a.reshape(-1, nc))
            alpha_c = fn.mcl_edge_limiter(flat(raw[...,c]), np.ascontiguousarray(d),
                                          flat(bar_ij[...,c]), flat(bar_ji[...,c]),
                                          flat(xmin_e[:,I]), flat(xmax_e[:,I]),
                                          flat(xmin_e[:,J]), flat(xmax_e[:,J]))
            alpha = np.min(alpha_c, axis=1)

        # concave derived quantities, checked at both limited bar states
        G = raw.reshape(-1, neq) / np.where(d > 0., 2.*d, np.inf)[:,None]
        bij = bar_ij.reshape(-1, neq)
        bji = bar_ji.reshape(-1, neq)
        for func, lower in self.hyp.derived_bounds():
            for U0, sgn in ((bij, 1.), (bji, -1.)):
                q0 = func(U0)
                q1 = func(U0 + sgn*alpha[:,None]*G)
                viol = q1 < lower
                if np.any(viol):
                    ratio = np.ones_like(alpha)
                    ratio[viol] = (q0[viol] - lower) / (q0[viol] - q1[viol])
                    alpha *= np.clip(ratio, 0., 1.)
        return alpha.reshape(ne, nedge)

    def Accumulate(self, limited):
        ''' skew-symmetric scatter of the limited fluxes, shape (ndofs, neq) '''
        y = np.zeros((self.ne, self.nd, self.neq))
        np.add.at(y, (slice(None), self.I), limited)
        np.add.at(y, (slice(None), self.J), -limited)
        return y.reshape(self.ndofs, self.neq)

    ''' Evaluation '''

    def ComputeFluxes(self, x, x_mpi=None):
        '''
        Runs one full MCL evaluation and returns all intermediate data as an
        MclFluxes record. x is never modified.
        '''
        hyp = self.hyp
        ops = self.ops
        ne, nd, neq = self.ne, self.nd, self.neq
        dim = self.fe.dim
        I, J = self.I, self.J

        u, u_ext = self.unpack(x, x_mpi)
        if not np.all(hyp.is_admissible(u_ext)):
            raise InadmissibleStateError('{0} inadmissible states on entry'.format(np.sum(~hyp.is_admissible(u_ext))))

        ''' Low-order element fluxes '''

        F = hyp.flux(u)
        ue = u.reshape(ne, nd, neq)
        Fe = F.reshape(ne, nd, neq, dim)
        CT = ops.CTilde.data
        nedge = len(I)
        d, bar_ij, bar_ji, y_ij, y_ji = self.policy.LinearFluxLumping(
            ue[:,I].reshape(-1,neq), ue[:,J].reshape(-1,neq),
            Fe[:,I].reshape(-1,neq,dim), Fe[:,J].reshape(-1,neq,dim),
            CT[:,:,0].reshape(-1,dim), CT[:,:,1].reshape(-1,dim))
        d = d.reshape(ne, nedge)
        bar_ij = bar_ij.reshape(ne, nedge, neq)
        bar_ji = bar_ji.reshape(ne, nedge, neq)

        low = np.zeros((ne, nd, neq))
        np.add.at(low, (slice(None), I), y_ij.reshape(ne, nedge, neq))
        np.add.at(low, (slice(None), J), y_ji.reshape(ne, nedge, neq))
        low = low.reshape(self.ndofs, neq)
        diag = np.zeros((ne, nd))
        np.add.at(diag, (slice(None), I), 2.*d)
        np.add.at(diag, (slice(None), J), 2.*d)
        diag = diag.ravel()

        ''' Face terms '''

        faces = self.face_traces(u_ext)
        face_res = np.zeros((self.ndofs, neq))
        for tr in faces:
            np.add.at(face_res, tr.dofs, tr.y1)
            np.add.at(diag, tr.dofs, tr.s*tr.lam)
        low += face_res

        bars = np.vstack([bar_ij.reshape(-1,neq), bar_ji.reshape(-1,neq)] + [tr.bar for tr in faces])
        ok = hyp.is_admissible(bars)
        if not np.all(ok):
            raise InadmissibleStateError('{0} inadmissible low-order bar states'.format(np.sum(~ok)))

        ''' Bounds, antidiffusion and limiting '''

        xmin, xmax = self.CollectBounds(u_ext, bar_ij, bar_ji, faces)

        high = -np.einsum('eijx,ejkx->eik', ops.PrecGradOp.data, Fe).reshape(self.ndofs, neq) + face_res
        dudt_high = high / self.m[:,None]
        raw = self.ComputeRawAntidiffusion(ue, Fe, d, dudt_high)
        alpha = self.SolveEdgeLimiters(raw, d, bar_ij, bar_ji, xmin, xmax)
        limited = alpha[...,None]*raw
        antidiffusion = self.Accumulate(limited)

        return MclFluxes(low_order=low, high_order=high, raw=raw, alpha=alpha,
                         limited=limited, antidiffusion=antidiffusion,
                         residual=low + antidiffusion, d=d, bar_ij=bar_ij,
                         bar_ji=bar_ji, xmin=xmin, xmax=xmax, faces=faces,
                         low_order_diag=diag)

    def ComputeTimeDerivative(self, x, y, x_mpi=None):
        '''
        Writes the MCL time derivative of x into y.

        Parameters
        ----------
        x : np array
            State vector, not modified
        y : np array
            Output, same size as x
        x_mpi : np array, optional
            Synchronized ghost buffer of a partitioned run. None means no
            ghost buffer (serial run).
        '''
        fluxes = self.ComputeFluxes(x, x_mpi)
        y[...] = self.pack(fluxes.residual / self.m[:,None]).reshape(np.shape(y))
        return fluxes

    def Mult(self, x, y):
        ''' serial time derivative, y = dx/dt '''
        self.ComputeTimeDerivative(x, y, None)

    def dqdt(self, q, t=None):
        ''' time derivative as a new array, used by the time marching methods '''
        y = np.empty(np.shape(q))
        self.Mult(q, y)
        return y

    def max_time_step(self, x, x_mpi=None, cfl=1.):
        '''
        Largest explicit Euler step keeping the low-order update a convex
        combination of bar states, cfl * min_i m_i / (sum_j 2 d_ij + sum_f s lam)
        '''
        fluxes = self.ComputeFluxes(x, x_mpi)
        diag = fluxes.low_order_diag
        pos = diag > 0
        if not np.any(pos):
            return np.inf
        return cfl*np.min(self.m[pos]/diag[pos])
