#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Connectivity and ghost data of the element-wise dofs
"""

import numpy as np
import scipy.sparse as sp


class DofInfo:
    '''
    Connectivity of the element-wise (duplicated) degrees of freedom.

    Dof i of local element e has index e*nd + i. A neighbour index idx refers
    to a local dof if idx < ndofs, to entry idx - ndofs of the ghost buffer
    if idx >= ndofs, and to a physical boundary if idx == -1.
    '''

    def __init__(self, mesh, fe, elements=None, print_progress=True):
        '''
        Parameters
        ----------
        mesh : MakeMesh
        fe : MakeFeOp
            Reference element, must match mesh.geom
        elements : array of int, optional
            Global ids of the elements owned by this partition.
            The default is all elements (serial run).
        '''
        if fe.geom != mesh.geom:
            raise Exception('Finite element geometry {0} does not match mesh geometry {1}'.format(fe.geom, mesh.geom))
        self.mesh = mesh
        self.fe = fe
        self.nd = fe.nd
        self.nfaces = fe.nfaces
        self.nfd = fe.nfd
        self.ne_global = mesh.ne
        self.print_progress = print_progress

        if elements is None:
            self.elements = np.arange(mesh.ne)
        else:
            self.elements = np.unique(np.asarray(elements, dtype=int))
            assert(self.elements[0] >= 0 and self.elements[-1] < mesh.ne),'Partition elements out of range'
        self.ne = len(self.elements)
        self.ndofs = self.ne*self.nd
        self.is_partitioned = self.ne < mesh.ne

        self.global2local = -np.ones(mesh.ne, dtype=int)
        self.global2local[self.elements] = np.arange(self.ne)

        if self.print_progress: print('... Building DofInfo')
        self.build_ghosts()
        self.build_face_nbrs()
        self.build_graph()

    def build_ghosts(self):
        ''' all dofs of face neighbours that are owned by another partition '''
        nbrs = self.mesh.elem_nbr[self.elements]
        ghost_elems = np.unique(nbrs[(nbrs >= 0) & (self.global2local[np.maximum(nbrs,0)] < 0)])
        self.ghost_elements = ghost_elems
        self.ghost_dofs = (ghost_elems[:,None]*self.nd + np.arange(self.nd)).ravel()
        self.nghost = len(self.ghost_dofs)
        self.ghost_elem_index = -np.ones(self.ne_global, dtype=int)
        self.ghost_elem_index[ghost_elems] = np.arange(len(ghost_elems))

    def elem_dof_base(self, e_global):
        ''' index of dof 0 of a global element in the extended (local + ghost) numbering '''
        e_global = np.asarray(e_global)
        e_loc = self.global2local[e_global]
        return np.where(e_loc >= 0, e_loc*self.nd,
                        self.ndofs + self.ghost_elem_index[e_global]*self.nd)

    def build_face_nbrs(self):
        '''
        NbrDofs[e,f,k] is the dof matching face dof k of face f of local element e.
        Faces of conforming neighbours run in opposite directions.
        '''
        bdr = self.fe.bdr_dofs
        self.NbrDofs = -np.ones((self.ne, self.nfaces, self.nfd), dtype=int)
        nbr = self.mesh.elem_nbr[self.elements]
        nbr_face = self.mesh.elem_nbr_face[self.elements]
        for f in range(self.nfaces):
            has = nbr[:,f] >= 0
            if not np.any(has): continue
            base = self.elem_dof_base(nbr[has,f])
            nbr_local = bdr[nbr_face[has,f]][:,::-1]
            self.NbrDofs[has,f,:] = base[:,None] + nbr_local
        self.is_bdr = self.NbrDofs[:,:,0] < 0

    def build_graph(self):
        '''
        The graph couples each dof with all dofs of its own element and of
        every face-adjacent element. Stored as a CSR matrix with ndofs rows
        and ndofs + nghost columns.
        '''
        rows = []
        cols = []
        nd = self.nd
        local = np.arange(nd)
        nbr = self.mesh.elem_nbr[self.elements]
        for e in range(self.ne):
            patch = [e*nd + local]
            for f in range(self.nfaces):
                if nbr[e,f] >= 0:
                    patch.append(self.elem_dof_base(nbr[e,f]) + local)
            patch = np.unique(np.concatenate(patch))
            rows.append(np.repeat(e*nd + local, len(patch)))
            cols.append(np.tile(patch, nd))
        rows = np.concatenate(rows)
        cols = np.concatenate(cols)
        data = np.ones(len(rows))
        graph = sp.csr_matrix((data, (rows, cols)), shape=(self.ndofs, self.ndofs + self.nghost))
        graph.sum_duplicates()
        graph.sort_indices()
        self.graph = graph

        # local block must be symmetric
        loc = graph[:, :self.ndofs]
        if (loc - loc.T).count_nonzero() != 0:
            raise Exception('DofInfo graph is not symmetric. Check the mesh face adjacency.')

    def get_neighbors(self, i):
        ''' graph neighbours of local dof i (itself included), in extended numbering '''
        assert(0 <= i < self.ndofs),'dof index out of range'
        return self.graph.indices[self.graph.indptr[i]:self.graph.indptr[i+1]]

    def restrict(self, x_global, neq):
        ''' the entries of a global state vector owned by this partition '''
        x_global = np.asarray(x_global)
        assert(x_global.size == neq*self.ne_global*self.nd),'Global state has the wrong size'
        dofs = (self.elements[:,None]*self.nd + np.arange(self.nd)).ravel()
        return x_global.reshape(neq, -1)[:,dofs].ravel()

    def gather_ghosts(self, x_global, neq):
        '''
        Builds the ghost buffer from a global state vector. Stands in for the
        ghost exchange of a distributed run.
        '''
        x_global = np.asarray(x_global)
        assert(x_global.size == neq*self.ne_global*self.nd),'Global state has the wrong size'
        if self.nghost == 0:
            return None
        return x_global.reshape(neq, -1)[:,self.ghost_dofs].ravel()
