"""Чертёж: модель, координаты, оформление листа и отрисовка в SVG."""
