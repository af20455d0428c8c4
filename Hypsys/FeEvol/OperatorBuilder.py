#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Element operators of the MCL scheme
"""

import numpy as np


class ElementTensor:
    '''
    Read-only array with named axes. Calling it with integer indices checks
    every index against its axis length before returning the entry or block,
    the raw array is available as .data for vectorized kernels.
    '''

    def __init__(self, name, data, axes):
        data = np.array(data)
        assert(data.ndim == len(axes)),'{0}: need one axis name per dimension'.format(name)
        data.flags.writeable = False
        self.name = name
        self.data = data
        self.axes = tuple(axes)
        self.shape = data.shape

    def __call__(self, *idx):
        if len(idx) > self.data.ndim:
            raise IndexError('{0} has only {1} axes {2}'.format(self.name, self.data.ndim, self.axes))
        for ax, i in enumerate(idx):
            if not isinstance(i, (int, np.integer)) or i < 0 or i >= self.shape[ax]:
                raise IndexError('{0}: index {1}={2} out of range [0,{3})'.format(
                                 self.name, self.axes[ax], i, self.shape[ax]))
        return self.data[idx]

    def __repr__(self):
        return 'ElementTensor({0}, axes={1}, shape={2})'.format(self.name, self.axes, self.shape)


class MclOperators:
    '''
    The built operator set of one mesh configuration. Produced by
    OperatorBuilder.build, never modified afterwards. A mesh change requires
    building a new set.
    '''

    tensor_names = ('DetJ', 'Adjugates', 'GradProd', 'PrecGradOp', 'MassMatLOR',
                    'Dof2LocNbr', 'MassMatRefInv', 'LumpedMass', 'ElemVolume',
                    'CTilde', 'Reroute', 'EdgeMass', 'FaceNormal', 'FaceMass',
                    'FaceCoords', 'NodeCoords', 'QuadCoords', 'Edges')

    def __init__(self, info, tensors):
        for key, val in info.items():
            object.__setattr__(self, key, val)
        for name in self.tensor_names:
            object.__setattr__(self, name, tensors[name])
        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name, value):
        if getattr(self, '_frozen', False):
            raise AttributeError('MclOperators is read-only. Build a new set with OperatorBuilder.')
        object.__setattr__(self, name, value)

    def tensors(self):
        return {name: getattr(self, name) for name in self.tensor_names}


class OperatorBuilder:

    def __init__(self, mesh, fe, use_diagonal_nbrs, elements=None, print_progress=True):
        '''
        Parameters
        ----------
        mesh : MakeMesh
        fe : MakeFeOp
            Reference element
        use_diagonal_nbrs : bool
            Whether corner-adjacent dofs of a square are coupled in the
            low-order stencil. Must be given explicitly.
        elements : array of int, optional
            Global ids of the elements to build, e.g. DofInfo.elements.
            The default is all elements.
        '''
        if not isinstance(use_diagonal_nbrs, (bool, np.bool_)):
            raise Exception('use_diagonal_nbrs must be set explicitly to True or False')
        if fe.geom != mesh.geom:
            raise Exception('Finite element geometry {0} does not match mesh geometry {1}'.format(fe.geom, mesh.geom))
        self.mesh = mesh
        self.fe = fe
        self.use_diagonal_nbrs = bool(use_diagonal_nbrs)
        if elements is None:
            self.elements = np.arange(mesh.ne)
        else:
            self.elements = np.asarray(elements, dtype=int)
        self.print_progress = print_progress
        self.lor_cache = {}

    def build(self):
        ''' computes all element tensors and returns them as an MclOperators set '''
        if self.print_progress: print('... Building MCL operators')
        fe = self.fe
        self.X = self.mesh.elem_vertices()[self.elements]

        tensors = self.ComputePrecGradOp()

        MassMatLOR = np.zeros((fe.nd, fe.nd))
        self.ComputeLORMassMatrix(MassMatLOR, fe.geom, self.use_diagonal_nbrs)
        Dof2LocNbr, edges = self.ComputeDof2LocNbr(MassMatLOR)
        CTilde, Reroute, has_reroute = self.ComputeLowOrderCoeffs(tensors['PrecGradOp'], edges, Dof2LocNbr)
        EdgeMass = MassMatLOR[edges[:,0], edges[:,1]][None,:] * tensors['ElemVolume'][:,None]
        FaceNormal, FaceMass, FaceCoords = self.ComputeFaceData()

        tensors['MassMatLOR'] = MassMatLOR
        tensors['Dof2LocNbr'] = Dof2LocNbr
        tensors['MassMatRefInv'] = np.copy(fe.mass_ref_inv)
        tensors['CTilde'] = CTilde
        tensors['Reroute'] = Reroute
        tensors['EdgeMass'] = EdgeMass
        tensors['FaceNormal'] = FaceNormal
        tensors['FaceMass'] = FaceMass
        tensors['FaceCoords'] = FaceCoords
        tensors['Edges'] = edges

        axes = {'DetJ': ('elem','quad'),
                'Adjugates': ('elem','quad','row','col'),
                'GradProd': ('elem','quad','dof','dim'),
                'PrecGradOp': ('elem','dof_i','dof_j','dim'),
                'MassMatLOR': ('dof_i','dof_j'),
                'Dof2LocNbr': ('dof','nbr'),
                'MassMatRefInv': ('dof_i','dof_j'),
                'LumpedMass': ('elem','dof'),
                'ElemVolume': ('elem',),
                'CTilde': ('elem','edge','direction','dim'),
                'Reroute': ('elem','edge','dof','dim'),
                'EdgeMass': ('elem','edge'),
                'FaceNormal': ('elem','face','dim'),
                'FaceMass': ('elem','face','face_dof'),
                'FaceCoords': ('elem','face','face_dof','dim'),
                'NodeCoords': ('elem','dof','dim'),
                'QuadCoords': ('elem','quad','dim'),
                'Edges': ('edge','end')}
        wrapped = {name: ElementTensor(name, tensors[name], axes[name]) for name in MclOperators.tensor_names}

        info = {'geom': fe.geom, 'p': fe.p, 'dim': fe.dim, 'nd': fe.nd,
                'ne': len(self.elements), 'nq': fe.nq, 'nfaces': fe.nfaces,
                'nfd': fe.nfd, 'nedge': len(edges), 'has_reroute': has_reroute,
                'use_diagonal_nbrs': self.use_diagonal_nbrs,
                'elements': np.copy(self.elements)}
        return MclOperators(info, wrapped)

    def rebuild(self, mesh):
        ''' explicit rebuild after a mesh change '''
        if mesh.geom != self.fe.geom:
            raise Exception('New mesh geometry {0} does not match the finite element'.format(mesh.geom))
        self.mesh = mesh
        return self.build()

    def ComputePrecGradOp(self):
        '''
        Jacobians, adjugates and the element gradient operators
            GradProd[e,q,j]   = adj(J)^T grad_ref phi_j    (= DetJ grad phi_j)
            PrecGradOp[e,i,j] = sum_q w_q phi_i GradProd[e,q,j] = int_e phi_i grad phi_j
        '''
        fe = self.fe
        X = self.X
        dN = fe.geom_shape_grad(fe.xi_q)                  # (nq, nverts, dim)
        J = np.einsum('evx,qvr->eqxr', X, dN)             # J[a,b] = dx_a/dxi_b
        if fe.dim == 1:
            DetJ = J[:,:,0,0]
            Adj = np.ones_like(J)
        else:
            DetJ = J[:,:,0,0]*J[:,:,1,1] - J[:,:,0,1]*J[:,:,1,0]
            Adj = np.empty_like(J)
            Adj[:,:,0,0] = J[:,:,1,1]
            Adj[:,:,0,1] = -J[:,:,0,1]
            Adj[:,:,1,0] = -J[:,:,1,0]
            Adj[:,:,1,1] = J[:,:,0,0]
        if np.any(DetJ <= 0):
            bad = np.unique(np.nonzero(DetJ <= 0)[0])
            raise Exception('Degenerate or inverted element Jacobian in elements {0}'.format(self.elements[bad]))

        GradProd = np.einsum('eqrx,qjr->eqjx', Adj, fe.dphi_q)
        PrecGradOp = np.einsum('q,qi,eqjx->eijx', fe.w_q, fe.phi_q, GradProd)
        LumpedMass = np.einsum('q,qi,eq->ei', fe.w_q, fe.phi_q, DetJ)
        ElemVolume = DetJ @ fe.w_q
        QuadCoords = np.einsum('qv,evx->eqx', fe.geom_shape(fe.xi_q), X)
        NodeCoords = np.einsum('iv,evx->eix', fe.geom_shape(fe.xi_nodes), X)

        return {'DetJ': DetJ, 'Adjugates': Adj, 'GradProd': GradProd,
                'PrecGradOp': PrecGradOp, 'LumpedMass': LumpedMass,
                'ElemVolume': ElemVolume, 'QuadCoords': QuadCoords,
                'NodeCoords': NodeCoords}

    def ComputeLORMassMatrix(self, ref_mat, geom, use_diagonal_nbrs):
        '''
        Mass matrix of the (bi)linear low-order-refined element on the p^dim
        sub-cells of the reference lattice, written into ref_mat. Without
        diagonal neighbours the corner-adjacent entries are lumped onto the
        diagonal, row sums are unchanged. Cached per geometry type.
        '''
        key = (geom, self.fe.p, bool(use_diagonal_nbrs))
        if key not in self.lor_cache:
            p = self.fe.p
            M1 = np.zeros((p+1, p+1))
            sub = np.array([[2.,1.],[1.,2.]]) / (6.*p)
            for k in range(p):
                M1[k:k+2,k:k+2] += sub
            if geom == 'segment':
                M = M1
            elif geom == 'square':
                M = np.kron(M1, M1)
                if not use_diagonal_nbrs:
                    lat = self.fe.lattice
                    diff = np.abs(lat[:,None,:] - lat[None,:,:])
                    diag = np.all(diff == 1, axis=2) & (M != 0)
                    M[np.diag_indices_from(M)] += np.sum(np.where(diag, M, 0.), axis=1)
                    M[diag] = 0.
            else:
                raise Exception('LOR mass matrix not available for geometry type {0}'.format(geom))
            M.flags.writeable = False
            self.lor_cache[key] = M
        assert(ref_mat.shape == self.lor_cache[key].shape),'ref_mat has the wrong shape'
        ref_mat[...] = self.lor_cache[key]
        return ref_mat

    def ComputeDof2LocNbr(self, MassMatLOR):
        ''' local low-order neighbours of each dof (padded with -1) and the edge list i<j '''
        nd = len(MassMatLOR)
        nbrs = [[j for j in range(nd) if j != i and MassMatLOR[i,j] != 0] for i in range(nd)]
        nmax = max(len(n) for n in nbrs)
        Dof2LocNbr = -np.ones((nd, nmax), dtype=int)
        for i, n in enumerate(nbrs):
            Dof2LocNbr[i,:len(n)] = n
        edges = np.array([(i,j) for i in range(nd) for j in nbrs[i] if i < j], dtype=int).reshape(-1,2)
        return Dof2LocNbr, edges

    def lattice_paths(self, i, k):
        '''
        Paths of low-order edges between local dofs i and k, with weights.
        With diagonal neighbours a single diagonal-first path is used,
        otherwise the average of the x-first and y-first paths.
        '''
        fe = self.fe
        a = fe.lattice[i]
        b = fe.lattice[k]
        if fe.dim == 1 or self.use_diagonal_nbrs:
            cur = np.copy(a)
            path = [i]
            while np.any(cur != b):
                cur = cur + np.sign(b - cur)
                path.append(fe.lattice_index(cur))
            return [(path, 1.)]
        paths = []
        for order in ((0,1),(1,0)):
            cur = np.copy(a)
            path = [i]
            for d in order:
                while cur[d] != b[d]:
                    cur[d] += np.sign(b[d] - cur[d])
                    path.append(fe.lattice_index(cur))
            paths.append(path)
        if paths[0] == paths[1]:
            return [(paths[0], 1.)]
        return [(paths[0], 0.5), (paths[1], 0.5)]

    def ComputeLowOrderCoeffs(self, PrecGradOp, edges, Dof2LocNbr):
        '''
        Restricts the Galerkin coefficients c_ij to the low-order stencil.
        A pair (i,k) outside the stencil is rerouted along lattice paths: its
        skew part (c_ik - c_ki)/2 is added to every path edge and its
        symmetric part (c_ik + c_ki)/2 is lumped onto the diagonal. Row and
        column sums are unchanged.

        Returns
        -------
        CTilde : (ne, nedge, 2, dim)
            c~_ij and c~_ji for each edge (i,j), i<j
        Reroute : (ne, nedge, nd, dim)
            Edge corrections sum_j Reroute[e,a,j].f_j, added to i and
            subtracted from j, that turn the low-order coefficients back into
            the Galerkin operator.
        has_reroute : bool
        '''
        ne, nd, _, dim = PrecGradOp.shape
        nedge = len(edges)
        edge_index = {(int(i),int(j)): a for a, (i,j) in enumerate(edges)}
        C = PrecGradOp

        CTilde = np.zeros((ne, nedge, 2, dim))
        CTilde[:,:,0,:] = C[:,edges[:,0],edges[:,1],:]
        CTilde[:,:,1,:] = C[:,edges[:,1],edges[:,0],:]
        Reroute = np.zeros((ne, nedge, nd, dim))
        has_reroute = False

        def edge_of(v, vn):
            key = (min(v,vn), max(v,vn))
            if key not in edge_index:
                raise Exception('Rerouting path step {0} is not a low-order edge'.format(key))
            return edge_index[key], (1. if v < vn else -1.)

        for i in range(nd):
            for k in range(i+1, nd):
                if k in Dof2LocNbr[i]: continue
                has_reroute = True
                cik = C[:,i,k,:]
                cki = C[:,k,i,:]
                askew = 0.5*(cik - cki)
                beta = 0.5*(cik + cki)
                for path, w in self.lattice_paths(i, k):
                    m = len(path) - 1
                    # nodal defects of this path as linear functionals of the nodal fluxes
                    D = np.zeros((m+1, ne, nd, dim))
                    D[0,:,k] -= w*cik
                    D[0,:,i] += w*beta
                    D[0,:,path[1]] += w*askew
                    D[m,:,i] -= w*cki
                    D[m,:,k] += w*beta
                    D[m,:,path[m-1]] -= w*askew
                    for t in range(1, m):
                        D[t,:,path[t+1]] += w*askew
                        D[t,:,path[t-1]] -= w*askew
                    acc = np.zeros((ne, nd, dim))
                    for t in range(m):
                        a, sgn = edge_of(path[t], path[t+1])
                        CTilde[:,a,0,:] += sgn*w*askew
                        CTilde[:,a,1,:] -= sgn*w*askew
                        acc += D[t]
                        Reroute[:,a] += sgn*acc
        return CTilde, Reroute, has_reroute

    def ComputeFaceData(self):
        ''' outward unit normals, lumped face masses and coordinates of the face dofs '''
        fe = self.fe
        X = self.X
        ne = len(X)
        FaceNormal = np.zeros((ne, fe.nfaces, fe.dim))
        FaceMass = np.zeros((ne, fe.nfaces, fe.nfd))
        FaceCoords = np.zeros((ne, fe.nfaces, fe.nfd, fe.dim))
        for f in range(fe.nfaces):
            va = X[:,fe.face_verts[f,0],:]
            if fe.dim == 1:
                FaceNormal[:,f,0] = -1. if f == 0 else 1.
                FaceMass[:,f,:] = 1.
                FaceCoords[:,f,0,:] = va
            else:
                vb = X[:,fe.face_verts[f,1],:]
                t = vb - va
                length = np.linalg.norm(t, axis=1)
                FaceNormal[:,f,0] = t[:,1]/length
                FaceNormal[:,f,1] = -t[:,0]/length
                # int_F B_k ds = |F|/(p+1) on a straight face
                FaceMass[:,f,:] = (length/(fe.p+1))[:,None]
                FaceCoords[:,f,:,:] = va[:,None,:] + fe.face_t[None,:,None]*t[:,None,:]
        return FaceNormal, FaceMass, FaceCoords
