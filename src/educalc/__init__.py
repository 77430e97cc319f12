"""EduCalc - semester GPA and cumulative CGPA calculator"""

__version__ = "1.0.0"
