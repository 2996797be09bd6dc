from typing import Iterable

from pysonnet.mainstructures import LinearExpression, Variable


def _is_iterable(obj) -> bool:
    try:
        iter(obj)
    except TypeError:
        return False
    return True

def Sum(values: Iterable | dict) -> LinearExpression:
    "Adds up variables, expressions and numbers into a single linear expression."
    if isinstance(values, dict):
        values = values.values()
    expression = LinearExpression()
    for value in values:
        expression += value
    return expression

def Dot(values1, values2) -> LinearExpression | float:
    """
    Returns the scalar product of two sequences. A scalar on either side is
    repeated to match the length of the other sequence.
    """
    if isinstance(values1, dict):
        values1 = list(values1.values())
    if isinstance(values2, dict):
        values2 = list(values2.values())

    if not _is_iterable(values1) and not _is_iterable(values2):
        return values1 * values2

    if _is_iterable(values1) and not _is_iterable(values2):
        values1 = list(values1)
        return Dot(values1, [values2]*len(values1))

    if not _is_iterable(values1) and _is_iterable(values2):
        values2 = list(values2)
        return Dot([values1]*len(values2), values2)

    products = []
    for val1, val2 in zip(values1, values2):
        if isinstance(val1, Variable | LinearExpression):
            products += [val1 * val2]
        else:
            products += [val2 * val1]
    return Sum(products)
