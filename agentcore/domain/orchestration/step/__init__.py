from .base_step import BaseStep
