"""
Test suite for the non-convex proximal operators.

Validates the closed-form solvers against their defining minimization problem
and against the reference formulas of:
- Gong, Zhang, Lu, Huang & Ye (2013) - General Iterative Shrinkage and Thresholding (GIST)
- Fan & Li (2001) - SCAD; Zhang (2010) - MCP
"""
