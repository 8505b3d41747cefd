from .money import to_money, clamp_non_negative, money_equal

__all__ = ['to_money', 'clamp_non_negative', 'money_equal']
