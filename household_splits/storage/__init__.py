"""Postgres persistence for splitting rules and their results"""
