"""Computation modules: physics, statistics, grading, analytics, data quality"""
