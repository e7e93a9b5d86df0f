"""Helpers that run git: repository queries, diffs, staging, commits and watching."""