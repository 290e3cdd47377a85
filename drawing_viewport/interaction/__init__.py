"""Взаимодействие с вьюпортом: привязки, hit-test, автомат состояний, контроллер."""
