from tabula import setupModule

config, logger = setupModule(__name__)
