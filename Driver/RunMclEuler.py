#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Euler equations with the MCL scheme: Sod shock tube (1D) or blast in a walled box (2D)
"""
import os
from sys import path
import numpy as np

n_nested_folder = 1
folder_path, _ = os.path.split(__file__)

for i in range(n_nested_folder):
    folder_path, _ = os.path.split(folder_path)

path.append(folder_path)

from Hypsys.DiffEq.Euler import Euler
from Hypsys.Disc.MakeMesh import MakeMesh
from Hypsys.Disc.MakeFeOp import MakeFeOp
from Hypsys.Disc.DofInfo import DofInfo
from Hypsys.FeEvol.MclEvolution import MclEvolution
from Hypsys.TimeMarch.TimeMarching import TimeMarching
import Hypsys.Methods.Analysis as An


'''
Solve the Euler equations with MCL: a Sod shock tube in 1D or a blast
wave in a closed 2D box
'''

# Eq parameters
dim = 1
gamma = 1.4
wave_speed = 'davis' # 'davis', 'two_rarefaction'

# Time marching
tm_method = 'ssprk3' # 'explicit_euler', 'ssprk2', 'ssprk3'
cfl = 0.4
tf = 0.2
max_retries = 3

# Domain / test case
if dim == 1:
    xmin, xmax, nelem = 0., 1., 100
    q0_type = 'sod'
    bc = 'outflow'
else:
    xmin, xmax, nelem = (0.,0.), (1.,1.), (20,20)
    q0_type = 'blast'
    bc = 'wall'

# Spatial discretization
p = 2
flux_policy = 'problem' # 'lumped', 'lumped_diag_nbrs', 'problem'
use_diagonal_nbrs = False
settings = {'limiter':'mcl',
            'mass_correction':True,
            'numflux':'LF'}

# Other
skip_ts = 9


''' Set up and solve '''

hyp = Euler(gamma, q0_type, bc, dim, wave_speed)
mesh = MakeMesh(dim, xmin, xmax, nelem, periodic=False)
fe = MakeFeOp(mesh.geom, p)
dofs = DofInfo(mesh, fe)
evol = MclEvolution(hyp, dofs, flux_policy, use_diagonal_nbrs, settings=settings)

q0 = evol.set_q0()
dt = evol.max_time_step(q0, cfl=cfl)
n_ts = int(np.ceil(tf/dt))
dt = tf/n_ts

tm = TimeMarching(evol, tm_method, keep_all_ts=True, skip_ts=skip_ts,
                  bool_calc_cons_obj=True, max_retries=max_retries)
q_sol = tm.solve(q0, dt, n_ts)
q = q_sol[:,-1]

u = q.reshape(hyp.neq, -1).T
rho, v, pres = hyp.cons2prim(u)
print('Density range: [{0:.6f}, {1:.6f}]'.format(np.min(rho), np.max(rho)))
print('Min pressure: {0:.6e}'.format(np.min(pres)))
print('Totals at final time:', An.calc_totals(evol, q))
An.limiter_summary(evol.ComputeFluxes(q))
