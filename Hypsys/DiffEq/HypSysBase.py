#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for hyperbolic systems of conservation laws
"""

import numpy as np

'''
The classes in this file are inherited by the hyperbolic systems.
HypSysBase:
    -Stores the parameters, the initial condition type and boundary policy
    -Introduces the functions consumed by the evolution operator (flux,
    wave-speed bounds, boundary states, admissibility, derived bounds)
    -Provides set_q0 for the scalar initial conditions shared by all systems
The systems are solved in this form:
    The Diffeq:             dqdt + div f(q) = 0
    Time marching methods:  dqdt = rhs(q)
States are arrays of shape (n, neq), fluxes of shape (n, neq, dim).
'''

class HypSysBase:

    # Diffeq info
    diffeq_name = None
    dim = None              # No. of dimensions
    neq = None              # No. of conserved variables
    has_exa_sol = False     # True if there is an exact solution for the DiffEq
    bounded_components = (0,) # Conserved variables limited by local bounds
    bc_types = ('periodic', 'dirichlet', 'outflow')
    cons_obj_name = None
    enforce_positivity = False
    xmin = None
    xmax = None
    dom_len = None

    # Parameters for the initial solution
    q0_max_q = 1.2                  # Max value in the vector q0
    q0_gauss_wave_val_bc = 1e-10    # Value at the boundary for Gauss wave

    def __init__(self, para, q0_type=None, bc='periodic'):
        '''
        Parameters
        ----------
        para : np array or float
            Parameters of the differential equation
        q0_type : str or callable
            The type of initial solution for the DiffEq. A callable maps
            points of shape (n, dim) to states of shape (n, neq).
        bc : str
            Boundary policy applied on physical boundary faces.
        '''

        ''' Add inputs to the class '''

        self.para = para
        self.q0_type = q0_type
        if self.q0_type is None:
            print("WARNING: No default q0_type given. Defaulting to 'gausswave'.")
            self.q0_type = 'gausswave'
        if bc not in self.bc_types:
            raise Exception('Boundary policy not understood. Try one of', self.bc_types)
        self.bc = bc

        ''' Modify type for inputs '''

        # Make sure that para is stored as a numpy array
        if isinstance(self.para, int) or isinstance(self.para, float):
            self.para = np.atleast_1d(np.asarray(self.para, dtype=float))

    def set_mesh(self, mesh):
        ''' Needed to scale the initial solution to the domain '''
        assert self.dim == mesh.dim,'Dimensions of DiffEq and mesh do not match.'
        self.xmin = mesh.xmin
        self.xmax = mesh.xmax
        self.dom_len = mesh.dom_len

    def set_q0(self, xy, q0_type=None):
        '''
        Parameters
        ----------
        xy : np array
            Points of shape (n, dim)
        q0_type : str or callable, optional
            The default is None, in which case self.q0_type is used.

        Returns
        -------
        q0 : np array of shape (n, neq)
        '''
        if q0_type is None:
            q0_type = self.q0_type
        xy = np.atleast_2d(xy)
        if callable(q0_type):
            return np.asarray(q0_type(xy), dtype=float).reshape(len(xy), self.neq)
        q0 = self.scalar_q0(xy, q0_type.lower())
        return np.repeat(q0.reshape(-1,1), self.neq, axis=1)

    def scalar_q0(self, xy, q0_type):
        ''' scalar initial conditions shared by all systems, shape (n,) '''
        assert self.xmin is not None,'Call set_mesh before setting the initial condition.'
        xmin = np.atleast_1d(self.xmin)
        xmax = np.atleast_1d(self.xmax)
        dom_len = np.atleast_1d(self.dom_len)

        if q0_type == 'gausswave':
            k = (8*np.log(self.q0_gauss_wave_val_bc/self.q0_max_q))
            mid_point = 0.5*(xmax + xmin)
            stdev2 = abs(dom_len**2/k) # standard deviation squared
            exp = -0.5*np.sum((xy-mid_point)**2/stdev2, axis=1)
            q0 = self.q0_max_q * np.exp(exp)
        elif 'sinwave' in q0_type:
            scaled = (xy - xmin) / dom_len
            q0 = self.q0_max_q * np.prod(np.sin(2*np.pi * scaled), axis=1)
            if 'shift' in q0_type:
                q0 = q0+2
        elif q0_type == 'square':
            # unit plateau on the middle half of the domain, zero elsewhere
            scaled = (xy - xmin) / dom_len
            q0 = np.all((scaled > 0.25) & (scaled < 0.75), axis=1).astype(float)
        elif q0_type == 'random':
            # Random numbers between -0.5 and 0.5
            q0 = np.random.rand(len(xy)) -0.5
        elif q0_type == 'constant':
            q0 = np.ones(len(xy))
        else:
            print(f'q0_type = {q0_type}')
            raise Exception('Unknown q0_type for initial solution')
        return q0

    ''' Functions consumed by the evolution operator '''

    def flux(self, u):
        raise Exception('This base method should not be called.')

    def max_wave_speed(self, ul, ur, normal):
        '''
        Upper bound of the wave speeds of the 1D Riemann problem between
        states ul and ur in the direction of the unit normal, shape (n,).
        '''
        raise Exception('This base method should not be called.')

    def boundary_state(self, u, normal, xy):
        '''
        External state used on physical boundary faces.

        Parameters
        ----------
        u : np array (n, neq)
            Interior trace
        normal : np array (n, dim)
            Outward unit normals
        xy : np array (n, dim)
            Coordinates of the boundary dofs
        '''
        if self.bc == 'dirichlet':
            return self.set_q0(xy)
        elif self.bc == 'outflow':
            return np.copy(u)
        else:
            raise Exception('No boundary state for bc = {0}. Is the mesh periodic?'.format(self.bc))

    def is_admissible(self, u):
        ''' boolean array of shape (n,), True where the state is admissible '''
        return np.all(np.isfinite(u), axis=1)

    def derived_bounds(self):
        '''
        List of (func, lower) pairs. func is concave, maps states (n, neq) to
        (n,), and must satisfy func >= lower after limiting.
        '''
        return []

    graph_viscosity = None # Problem-specific low-order viscosity, optional

    def check_positivity(self, q):
        ''' returns True if any bounded variable is negative '''
        u = q.reshape(self.neq, -1).T
        return bool(np.any(u[:,list(self.bounded_components)] < 0))

    def calc_cons_obj(self, q, mass):
        ''' total amount of every conserved variable, given lumped masses per dof '''
        u = q.reshape(self.neq, -1)
        return u @ mass
