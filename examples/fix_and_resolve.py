"""
Fix-and-resolve on a small production plan.

After a first solve, the integer production levels are frozen at their values and the
continuous overtime is re-optimized under a tighter overtime limit. Nested freezes
(the `with` block inside the loop) do not release the outer freeze early.
"""

import pysonnet as opt
from pysonnet.solvers import HighsApi

PRODUCTS = ['chairs', 'tables', 'desks']
PROFIT = {'chairs': 45, 'tables': 80, 'desks': 110}
HOURS = {'chairs': 2, 'tables': 4, 'desks': 6}
REGULAR_HOURS = 100


def main():
    produce = opt.Variable.new_dict(PRODUCTS, 'produce', upper=20, vartype=opt.VarType.INTEGER)
    overtime = opt.Variable('overtime', upper=30)

    prob = (
        opt.Problem(name='production', solver_api=HighsApi)
        .add_constr(opt.LinearConstraint(
            opt.Sum(HOURS[p] * produce[p] for p in PRODUCTS) <= REGULAR_HOURS + overtime, 'hours'
        ))
        .set_objective(opt.Sum(PROFIT[p] * produce[p] for p in PRODUCTS) - 20 * overtime, is_minimization=False)
        .solve()
    )
    print("First plan:")
    for var in prob.variables:
        print(" ", var.to_level_string())

    for var in produce.values():
        var.freeze()

    overtime.upper = 10
    prob.solve()
    print("Production frozen, overtime limited to 10:")
    for var in prob.variables:
        print(" ", var.to_level_string(), "" if var.is_feasible() else "(infeasible)")

    for var in produce.values():
        with var.keep_frozen():
            assert var.freeze_count == 2
        var.unfreeze()

    prob.solve()
    print("Everything free again, objective:", prob.get_objectivefunction_value())

if __name__ == '__main__':
    main()
