from .client import AnsweringService, ChatCompletionAnsweringService

__all__ = ['AnsweringService', 'ChatCompletionAnsweringService']
