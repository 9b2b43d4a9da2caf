from setuptools import setup

setup(name = 'pyrecurrent',
      version = '0.1.0',
      description = '''Formats camera trap detections into survey based
recurrent event tables for piece-wise exponential time-to-event models.''',
      license = 'MIT',
      packages = ['pyrecurrent',],
      python_requires= '>=3.9',
      install_requires=["numpy >= 1.22",
                        "pandas >= 1.5",
                        "tqdm >= 4.60"],
      extras_require={'test': ["pytest >= 7.0"]},
      zip_safe = False
      )
