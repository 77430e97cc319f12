"""Scoring engine, history reconciliation, extraction normalization and catalog"""
