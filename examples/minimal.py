import pysonnet as opt
from pysonnet.solvers import HighsApi


def main():
    x1 = opt.Variable('x1', lower=-opt.INF)
    x2 = opt.Variable('x2', lower=-opt.INF)

    constr1 = opt.LinearConstraint(x2 - x1 >= 2, 'constr1')
    constr2 = opt.LinearConstraint(x1 + x2 >= 0, 'constr2')

    objective_function = x1 + x2 + 5

    prob = (
        opt.Problem(name="minimal_problem", solver_api=HighsApi)
        .add_constrs(constr1, constr2)
        .set_objective(opt.ObjectiveFunction(objective_function, is_minimization=True))
        .solve()
    )
    print("Solve status:", prob.solve_status)
    print("Objective function value:", prob.get_objectivefunction_value())

    print(x1.to_level_string())
    print(x2.to_level_string())
    print(constr1, "dual:", constr1.dual)

if __name__ == '__main__':
    main()
