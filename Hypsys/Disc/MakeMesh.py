#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Structured segment and quad meshes
"""

import numpy as np


class MakeMesh:

    def __init__(self, dim, xmin, xmax, nelem,
                 periodic=False, warp_factor=0,
                 warp_type='default', print_progress=True):
        '''
        Parameters
        ----------
        dim : int
            The dimension of the problem. For now can only be 1 or 2.
        xmin : float or (float,float)
            Min coordinate of the mesh, either x in 1D or (x,y) in 2D
        xmax : float or (float,float)
             Max coordinate of the mesh, either x in 1D or (x,y) in 2D
        nelem : int or (int,int)
            No. of elements in the mesh
        periodic : bool or (bool,bool), optional
            Whether opposite boundaries are identified.
            The default is False.
        warp_factor : float, optional
            Strength of the smooth warping of interior vertices.
            The default is 0.
        '''

        ''' Add all inputs to the class '''

        self.dim = dim
        self.xmin = xmin
        self.xmax = xmax
        self.nelem = nelem
        if isinstance(periodic, bool):
            self.periodic = (periodic,)*dim
        else:
            assert(len(periodic) == dim),'periodic must be a bool or one bool per direction'
            self.periodic = tuple(periodic)
        self.warp_factor = warp_factor
        self.warp_type = warp_type
        self.print_progress = print_progress

        ''' Additional terms '''

        if self.print_progress: print('... Building Mesh')

        if self.dim == 1:
            self.geom = 'segment'
            self.dom_len = self.xmax - self.xmin
            self.build_mesh_1d()

        elif self.dim == 2:
            self.geom = 'square'
            self.dom_len = (self.xmax[0] - self.xmin[0], self.xmax[1] - self.xmin[1])
            self.build_mesh_2d()

        else:
            raise Exception('Only currently set up for 1D and 2D')

        if self.warp_factor != 0:
            self.warp_vertices()

        self.build_faces()

    def build_mesh_1d(self):
        '''
        Builds a uniform 1D mesh. Element e has vertices (e, e+1).
        '''
        assert(isinstance(self.nelem, (int, np.integer)) and self.nelem > 0),'nelem must be a positive integer'
        self.ne = self.nelem
        self.vertices = np.linspace(self.xmin, self.xmax, self.nelem+1).reshape(-1,1)
        self.nv = len(self.vertices)
        self.elements = np.stack((np.arange(self.ne), np.arange(1,self.ne+1)), axis=1)

        self.vert_idx = np.arange(self.nv).reshape(-1,1)
        self.nelem_dir = np.array([self.ne])

    def build_mesh_2d(self):
        '''
        Builds a uniform 2D quad mesh. Vertex (ix,iy) has index ix + (nx+1)*iy
        and element (ex,ey) has index ex + nx*ey, vertices counter-clockwise.
        '''
        nx, ny = self.nelem
        assert(nx > 0 and ny > 0),'nelem must be positive'
        self.ne = nx*ny
        x = np.linspace(self.xmin[0], self.xmax[0], nx+1)
        y = np.linspace(self.xmin[1], self.xmax[1], ny+1)
        yy, xx = np.meshgrid(y, x, indexing='ij')
        self.vertices = np.stack((xx.ravel(), yy.ravel()), axis=1)
        self.nv = len(self.vertices)

        ey, ex = np.divmod(np.arange(self.ne), nx)
        v0 = ex + (nx+1)*ey
        self.elements = np.stack((v0, v0+1, v0+nx+2, v0+nx+1), axis=1)

        iy, ix = np.divmod(np.arange(self.nv), nx+1)
        self.vert_idx = np.stack((ix, iy), axis=1)
        self.nelem_dir = np.array([nx, ny])

    def build_faces(self):
        '''
        Matches element faces through their midpoints on the vertex lattice.
        The midpoints are doubled to stay integer and wrapped in periodic
        directions, so the two edges of a periodic line with 2 elements stay
        distinct. Sets elem_nbr[e,f] (neighbouring element or -1 on a
        boundary) and elem_nbr_face[e,f] (the face index seen from the
        neighbour).
        '''
        if self.dim == 1:
            face_verts = np.array([[0],[1]])
        else:
            face_verts = np.array([[0,1],[1,2],[2,3],[3,0]])
        self.nfaces = len(face_verts)
        nfv = face_verts.shape[1]
        period = 2*self.nelem_dir

        faces = {}
        for e in range(self.ne):
            for f in range(self.nfaces):
                mid = 2*np.sum(self.vert_idx[self.elements[e,face_verts[f]]], axis=0) // nfv
                mid = np.where(self.periodic, np.mod(mid, period), mid)
                faces.setdefault(tuple(int(v) for v in mid), []).append((e,f))

        self.elem_nbr = -np.ones((self.ne, self.nfaces), dtype=int)
        self.elem_nbr_face = -np.ones((self.ne, self.nfaces), dtype=int)
        for key, shared in faces.items():
            # an element can only meet itself with 1 element in a periodic direction
            if len(shared) > 2 or (len(shared) == 2 and shared[0][0] == shared[1][0]):
                raise Exception('Non-conforming face at lattice midpoint {0}. Use at least 2 elements in each periodic direction.'.format(key))
            if len(shared) == 2:
                (e1,f1), (e2,f2) = shared
                self.elem_nbr[e1,f1], self.elem_nbr_face[e1,f1] = e2, f2
                self.elem_nbr[e2,f2], self.elem_nbr_face[e2,f2] = e1, f1
        self.n_bdr_faces = np.sum(self.elem_nbr < 0)
        if any(self.periodic) and self.print_progress:
            print('... Mesh has {0} boundary faces after periodic identification'.format(self.n_bdr_faces))

    def elem_vertices(self, e=None):
        ''' vertex coordinates of element(s), shape (ne, nverts, dim) '''
        if e is None:
            return self.vertices[self.elements]
        return self.vertices[self.elements[e]]

    def warp_vertices(self):
        '''
        Moves the vertices with a smooth map that fixes the domain boundary, so
        periodic identification and boundary faces are unchanged. The maps are
        written in the unit coordinates s = (x - xmin)/dom_len.

        warp_type (1D) : 'default' (exponential bump) or 'sigmoid'
        warp_type (2D) : 'default' (bump in both directions) or 'skew'
        '''
        a = self.warp_factor
        xmin = np.atleast_1d(self.xmin)
        L = np.atleast_1d(self.dom_len)
        s = (self.vertices - xmin) / L
        bump = np.prod(np.sin(np.pi*s), axis=1)

        if self.dim == 1:
            maps = {'default': lambda s: s + a*np.exp(1-s[:,0:1])*bump[:,None],
                    'sigmoid': lambda s: (1+a)*(s-0.5)/(1+a*np.abs(2*s-1)) + 0.5}
            if self.warp_type == 'sigmoid':
                assert(a > -1),'Invalid warp_factor. Use a value >-1'
        else:
            assert(a < 0.24),'Try a warp_factor < 0.24 for this mesh transformation'
            shift = np.zeros_like(s)
            if self.warp_type == 'skew':
                shift[:,0] = np.sin(2*np.pi*s[:,1])*np.sin(np.pi*s[:,0])
            else:
                shift[:,0] = bump
                shift[:,1] = np.exp(1-s[:,1])*bump
            maps = {'default': lambda s: s + a*shift,
                    'skew': lambda s: s + a*shift}

        if self.warp_type not in maps:
            print('WARNING: mesh.warp_type not understood. Reverting to default.')
            self.warp_type = 'default'
        if self.print_progress: print('... Warping mesh ({0}) by a factor of {1}'.format(self.warp_type, a))
        self.vertices = maps[self.warp_type](s)*L + xmin

        if self.dim == 1:
            assert np.all(np.diff(self.vertices[:,0]) > 0),"Not a valid coordinate transformation. Try using a lower warp_factor."
            return
        # corner Jacobians of the bilinear map must stay positive
        X = self.elem_vertices()
        for c in range(4):
            d1 = X[:,(c+1)%4,:] - X[:,c,:]
            d2 = X[:,(c+3)%4,:] - X[:,c,:]
            assert np.all(d1[:,0]*d2[:,1] - d1[:,1]*d2[:,0] > 0),"Not a valid coordinate transformation. Try using a lower warp_factor."
