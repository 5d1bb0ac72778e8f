#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Personalize certificate and profile templates with a name and photo.
"""

# Standard Library
import sys

# local repo modules
import template_personalizer.cli


if __name__ == "__main__":
	sys.exit(template_personalizer.cli.main())
