#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bernstein reference elements on the segment and the square
"""

import numpy as np
from scipy.special import comb


def bernstein_1d(p, t):
    '''
    Evaluates the 1D Bernstein polynomials of degree p on [0,1].

    Parameters
    ----------
    p : int
        Polynomial degree
    t : np array
        Points at which to evaluate, shape (n,)

    Returns
    -------
    np array of shape (n, p+1)
    '''
    t = np.asarray(t, dtype=float).reshape(-1,1)
    k = np.arange(p+1)
    return comb(p, k) * t**k * (1.-t)**(p-k)

def bernstein_1d_der(p, t):
    ''' derivative of the 1D Bernstein polynomials, p*(B^{p-1}_{k-1} - B^{p-1}_k) '''
    t = np.asarray(t, dtype=float).reshape(-1)
    b = bernstein_1d(p-1, t)
    db = np.zeros((len(t), p+1))
    db[:,1:] += p*b
    db[:,:-1] -= p*b
    return db


class MakeFeOp:
    '''
    Positive (Bernstein) reference element on the unit segment or unit square.
    Local dof i of a square sits at lattice coordinates (i % (p+1), i // (p+1)).
    '''

    geom_types = ('segment', 'square')

    def __init__(self, geom, p, nq1=None):
        '''
        Parameters
        ----------
        geom : str
            Reference geometry, 'segment' or 'square'
        p : int
            Polynomial degree, p >= 1
        nq1 : int, optional
            Number of Gauss-Legendre points per direction.
            The default is p+2.
        '''

        self.geom = geom.lower()
        if self.geom == 'segment':
            self.dim = 1
        elif self.geom == 'square':
            self.dim = 2
        else:
            raise Exception('Geometry type not understood. Try one of', self.geom_types)
        assert(isinstance(p, (int, np.integer)) and p >= 1),'Polynomial degree must be an integer >= 1'
        self.p = int(p)
        self.nd1 = self.p + 1
        self.nd = self.nd1**self.dim
        if nq1 is None: self.nq1 = self.p + 2
        else: self.nq1 = nq1

        ''' Lattice and control points '''

        if self.dim == 1:
            self.lattice = np.arange(self.nd1).reshape(-1,1)
        else:
            iy, ix = np.divmod(np.arange(self.nd), self.nd1)
            self.lattice = np.stack((ix,iy), axis=1)
        self.xi_nodes = self.lattice / self.p

        ''' Quadrature '''

        x, w = np.polynomial.legendre.leggauss(self.nq1)
        t = 0.5*(x + 1.)
        w = 0.5*w
        if self.dim == 1:
            self.xi_q = t.reshape(-1,1)
            self.w_q = w
        else:
            ty, tx = np.meshgrid(t, t, indexing='ij')
            wy, wx = np.meshgrid(w, w, indexing='ij')
            self.xi_q = np.stack((tx.ravel(), ty.ravel()), axis=1)
            self.w_q = (wx*wy).ravel()
        self.nq = len(self.w_q)
        self.phi_q = self.eval_basis(self.xi_q)
        self.dphi_q = self.eval_basis_grad(self.xi_q)

        ''' Reference mass matrix '''

        self.mass_ref = (self.phi_q * self.w_q[:,None]).T @ self.phi_q
        self.mass_ref_inv = np.linalg.inv(self.mass_ref)

        ''' Faces: vertex pairs and dofs, ordered along the face '''

        if self.dim == 1:
            self.nverts = 2
            self.nfaces = 2
            self.nfd = 1
            self.face_verts = np.array([[0],[1]])
            self.bdr_dofs = np.array([[0],[self.p]])
        else:
            n = self.nd1
            k = np.arange(n)
            self.nverts = 4
            self.nfaces = 4
            self.nfd = n
            self.face_verts = np.array([[0,1],[1,2],[2,3],[3,0]])
            self.bdr_dofs = np.array([k,                    # bottom
                                      self.p + n*k,         # right
                                      k[::-1] + n*self.p,   # top
                                      n*k[::-1]])           # left
        self.face_t = np.linspace(0., 1., self.nfd) if self.nfd > 1 else np.zeros(1)

    def eval_basis(self, xi):
        ''' basis at reference points xi of shape (n, dim), returns (n, nd) '''
        xi = np.atleast_2d(xi)
        if self.dim == 1:
            return bernstein_1d(self.p, xi[:,0])
        bx = bernstein_1d(self.p, xi[:,0])
        by = bernstein_1d(self.p, xi[:,1])
        return (by[:,:,None] * bx[:,None,:]).reshape(len(xi), self.nd)

    def eval_basis_grad(self, xi):
        ''' reference gradients at points xi of shape (n, dim), returns (n, nd, dim) '''
        xi = np.atleast_2d(xi)
        n = len(xi)
        if self.dim == 1:
            return bernstein_1d_der(self.p, xi[:,0]).reshape(n, self.nd, 1)
        bx = bernstein_1d(self.p, xi[:,0])
        by = bernstein_1d(self.p, xi[:,1])
        dbx = bernstein_1d_der(self.p, xi[:,0])
        dby = bernstein_1d_der(self.p, xi[:,1])
        grad = np.zeros((n, self.nd, 2))
        grad[:,:,0] = (by[:,:,None] * dbx[:,None,:]).reshape(n, self.nd)
        grad[:,:,1] = (dby[:,:,None] * bx[:,None,:]).reshape(n, self.nd)
        return grad

    def geom_shape(self, xi):
        ''' (bi)linear vertex shape functions, returns (n, nverts) '''
        xi = np.atleast_2d(xi)
        if self.dim == 1:
            return np.stack((1.-xi[:,0], xi[:,0]), axis=1)
        x, y = xi[:,0], xi[:,1]
        return np.stack(((1.-x)*(1.-y), x*(1.-y), x*y, (1.-x)*y), axis=1)

    def geom_shape_grad(self, xi):
        ''' reference gradients of the vertex shape functions, returns (n, nverts, dim) '''
        xi = np.atleast_2d(xi)
        n = len(xi)
        if self.dim == 1:
            grad = np.zeros((n, 2, 1))
            grad[:,0,0] = -1.
            grad[:,1,0] = 1.
            return grad
        x, y = xi[:,0], xi[:,1]
        grad = np.zeros((n, 4, 2))
        grad[:,:,0] = np.stack((-(1.-y), 1.-y, y, -y), axis=1)
        grad[:,:,1] = np.stack((-(1.-x), -x, x, 1.-x), axis=1)
        return grad

    def lattice_index(self, coords):
        ''' local dof index from lattice coordinates '''
        if self.dim == 1:
            return int(coords[0])
        return int(coords[0]) + self.nd1*int(coords[1])
