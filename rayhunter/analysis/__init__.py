"""Information elements, the analyzer interface and analysis report structures."""