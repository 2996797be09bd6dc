"""
One set of variables, two problems, two solver instances.

Changing a bound once updates both solver models.
"""

import pysonnet as opt
from pysonnet.logging import enable_debug_logging
from pysonnet.solvers import HighsApi


def main():
    enable_debug_logging()

    x, y = opt.Variable.new_list(2, 'v', upper=8)

    cheap = opt.Problem(name='cheap', solver_api=HighsApi).add_constr(x + y >= 4).set_objective(x + 3 * y)
    greedy = opt.Problem(name='greedy', solver_api=HighsApi).add_constr(x + y <= 12).set_objective(
        2 * x + y, is_minimization=False
    )

    for prob in (cheap, greedy):
        prob.solve()
        print(prob.name, prob.get_objectivefunction_value(), x.value, y.value)

    # One assignment, two solver notifications
    x.upper = 3

    for prob in (cheap, greedy):
        prob.solve()
        print(prob.name, prob.get_objectivefunction_value(), x.value, y.value)

if __name__ == '__main__':
    main()
