from .main import MashApplication, mash_main, process_global_options, tool_log_level

__all__ = ['MashApplication', 'mash_main', 'process_global_options', 'tool_log_level']
