#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shared fixtures
"""

import numpy as np
import pytest

from Hypsys.Disc.MakeMesh import MakeMesh
from Hypsys.Disc.MakeFeOp import MakeFeOp
from Hypsys.Disc.DofInfo import DofInfo
from Hypsys.FeEvol.MclEvolution import MclEvolution


def build_mesh(dim, nelem, periodic=True, warp_factor=0., warp_type='default'):
    if dim == 1:
        xmin, xmax = 0., 1.
    else:
        xmin, xmax = (0.,0.), (1.,1.)
    return MakeMesh(dim, xmin, xmax, nelem, periodic=periodic,
                    warp_factor=warp_factor, warp_type=warp_type,
                    print_progress=False)


@pytest.fixture
def make_mesh():
    return build_mesh


@pytest.fixture
def make_dofs():
    def _make(dim, nelem, p, periodic=True, warp_factor=0., elements=None):
        mesh = build_mesh(dim, nelem, periodic, warp_factor)
        fe = MakeFeOp(mesh.geom, p)
        return DofInfo(mesh, fe, elements, print_progress=False)
    return _make


@pytest.fixture
def make_evol(make_dofs):
    def _make(hyp, nelem, p, periodic=True, warp_factor=0., flux_policy='lumped',
              use_diagonal_nbrs=None, settings=None, elements=None):
        dofs = make_dofs(hyp.dim, nelem, p, periodic, warp_factor, elements)
        return MclEvolution(hyp, dofs, flux_policy, use_diagonal_nbrs,
                            settings=settings, print_progress=False)
    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
