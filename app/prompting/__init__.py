"""Prompting package.

This package contains deterministic text-construction helpers: system prompts and
chat payload messages for the model, the related-topic hint, rule-based replies
and the bilingual static default. It does not perform retrieval, scoring or model
invocation.
"""
