#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Linear advection with the MCL scheme: a square on a warped periodic mesh and a convergence study
"""
import os
from sys import path
import numpy as np

n_nested_folder = 1
folder_path, _ = os.path.split(__file__)

for i in range(n_nested_folder):
    folder_path, _ = os.path.split(folder_path)

path.append(folder_path)

from Hypsys.DiffEq.Advection import Advection
from Hypsys.Disc.MakeMesh import MakeMesh
from Hypsys.Disc.MakeFeOp import MakeFeOp
from Hypsys.Disc.DofInfo import DofInfo
from Hypsys.FeEvol.MclEvolution import MclEvolution
from Hypsys.TimeMarch.TimeMarching import TimeMarching
import Hypsys.Methods.Analysis as An


'''
Linear advection of a discontinuous profile with MCL, then a short
convergence study of the smooth Gauss wave
'''

# Eq parameters
dim = 2
para = [1.,0.5] # advection velocity

# Time marching
tm_method = 'ssprk3' # 'explicit_euler', 'ssprk2', 'ssprk3'
cfl = 0.5
tf = 0.2

# Domain
xmin = (0.,0.)
xmax = (1.,1.)
periodic = True
warp_factor = 0.05

# Spatial discretization
p = 2
nelem = (8,8)
flux_policy = 'lumped' # 'lumped', 'lumped_diag_nbrs', 'problem'
settings = {'limiter':'mcl',           # 'mcl', 'none', 'low'
            'mass_correction':True,
            'numflux':'LF'}            # 'LF', 'LF_global'

# Initial solution
q0_type = 'square' # 'gausswave', 'sinwave', 'square'

# Other
skip_ts = 0
print_sol_norm = False


''' Set up and solve '''

hyp = Advection(para, q0_type, bc='periodic')
mesh = MakeMesh(dim, xmin, xmax, nelem, periodic=periodic, warp_factor=warp_factor)
fe = MakeFeOp(mesh.geom, p)
dofs = DofInfo(mesh, fe)
evol = MclEvolution(hyp, dofs, flux_policy, settings=settings)

q0 = evol.set_q0()
dt = evol.max_time_step(q0, cfl=cfl)
n_ts = int(np.ceil(tf/dt))
dt = tf/n_ts

tm = TimeMarching(evol, tm_method, keep_all_ts=False, skip_ts=skip_ts,
                  bool_calc_cons_obj=True, print_sol_norm=print_sol_norm)
q = tm.solve(q0, dt, n_ts)

print('Total mass change: {0:.3e}'.format(float(tm.cons_obj[0,-1] - tm.cons_obj[0,0])))
print('Solution range: [{0:.6f}, {1:.6f}]'.format(np.min(q), np.max(q)))
An.limiter_summary(evol.ComputeFluxes(q))


''' Convergence of the smooth solution '''

nelems = [4,8,16]
dof_vec = np.zeros(len(nelems))
err_vec = np.zeros(len(nelems))
for i, ne1 in enumerate(nelems):
    hyp = Advection(para, 'gausswave', bc='periodic')
    mesh = MakeMesh(dim, xmin, xmax, (ne1,ne1), periodic=True, print_progress=False)
    dofs = DofInfo(mesh, MakeFeOp(mesh.geom, p), print_progress=False)
    evol = MclEvolution(hyp, dofs, flux_policy, settings=settings, print_progress=False)
    q0 = evol.set_q0()
    dt = evol.max_time_step(q0, cfl=cfl)
    n_ts = int(np.ceil(tf/dt))
    tm = TimeMarching(evol, tm_method, keep_all_ts=False, print_progress=False)
    q = tm.solve(q0, tf/n_ts, n_ts)
    dof_vec[i] = dofs.ndofs
    err_vec[i] = An.calc_error(evol, q, tf)

An.calc_conv_rate(dof_vec, err_vec, dim)
