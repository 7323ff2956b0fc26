"""A café tab aggregate and a projection of the tables with open tabs."""