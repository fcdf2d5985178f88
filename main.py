#!/usr/bin/env python3
"""
LLM Sizer
Main entry point with CLI interface
"""

from llm_sizer.cli import cli

if __name__ == '__main__':
    cli()
