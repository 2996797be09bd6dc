INF = float('inf')

# Absolute tolerance for comparing bounds and solution values
EPSILON = 1e-5
