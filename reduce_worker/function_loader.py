"""
Loads a user's reduce function from a job file
"""

import os
import importlib.util

REDUCE_FUNCTION_NAMES = ('reduce_function', 'reduce_fn')


class FunctionLoader:
    """Dynamically loads the reduce function defined in a user's Python file"""

    def __init__(self, job_file: str):
        """
        Args:
            job_file: Path to the user's Python file
        """
        self.job_file = job_file
        self.module = None

    def load_module(self):
        """
        Import the job file as a module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If the job file doesn't exist
            ImportError: If the file cannot be loaded as a module
        """
        if not os.path.exists(self.job_file):
            raise FileNotFoundError(f"Job file not found: {self.job_file}")

        name = os.path.splitext(os.path.basename(self.job_file))[0]
        spec = importlib.util.spec_from_file_location(f"user_job_{name}", self.job_file)
        if spec is None or spec.loader is None:
            raise ImportError(f"Failed to load job file: {self.job_file}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        self.module = module
        return module

    def get_reduce_function(self):
        """
        Get the reduce function, loading the module if needed

        Returns:
            `reduce_function` (or `reduce_fn`) from the module

        Raises:
            AttributeError: If the module defines neither name
        """
        if not self.module:
            self.load_module()

        for name in REDUCE_FUNCTION_NAMES:
            func = getattr(self.module, name, None)
            if func is not None:
                return func
        raise AttributeError("Job file must define 'reduce_function'")
