from .model_reader import ModelReader
